"""Tests for forms and model helpers."""

import pytest

from hpc_club.exceptions import ValidationFailed
from hpc_club.models.auth import LoginForm, RegisterForm
from hpc_club.models.error_entry import ErrorCause
from hpc_club.models.notes import NotesWorkspace, extract_tags
from hpc_club.models.planner import StudyMaterial, TaskPriority
from hpc_club.models.simulado import (
    SimuladoArea,
    SimuladoResult,
    percentage,
    performance_band,
    round_half_up,
)


class TestRegisterForm:
    def test_valid_form_normalizes_email(self):
        form = RegisterForm(name=" Ana ", email="Ana@Example.com ", password="secret1")
        assert form.name == "Ana"
        assert form.email == "ana@example.com"

    def test_missing_name(self):
        with pytest.raises(ValidationFailed) as exc:
            RegisterForm(email="a@b.com", password="secret1")
        assert exc.value.field == "name"
        assert exc.value.message == "Preencha todos os campos."

    def test_invalid_email(self):
        with pytest.raises(ValidationFailed) as exc:
            RegisterForm(name="Ana", email="not-an-email", password="secret1")
        assert exc.value.message == "Email inválido."

    def test_short_password(self):
        with pytest.raises(ValidationFailed) as exc:
            RegisterForm(name="Ana", email="a@b.com", password="123")
        assert exc.value.field == "password"
        assert exc.value.message == "A senha deve ter pelo menos 6 caracteres."


class TestLoginForm:
    def test_missing_password(self):
        with pytest.raises(ValidationFailed) as exc:
            LoginForm(email="a@b.com")
        assert exc.value.message == "Preencha email e senha."

    def test_valid(self):
        form = LoginForm(email="a@b.com", password="x")
        assert form.password == "x"


class TestPercentages:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.49) == 2

    def test_zero_total_is_zero(self):
        assert percentage(0, 0) == 0

    def test_area_percentage(self):
        assert SimuladoArea(name="Matemática", correct=30, total=45).percentage == 67

    def test_result_percentage_uses_sums(self):
        result = SimuladoResult(id="s1", exam_type="ENEM", areas=[
            SimuladoArea(name="A", correct=45, total=45),
            SimuladoArea(name="B", correct=0, total=45),
            SimuladoArea(name="C", correct=1, total=2),
        ])
        # 46 / 92
        assert result.percentage == 50

    def test_result_without_areas(self):
        assert SimuladoResult(id="s1", exam_type="UFRGS").percentage == 0

    def test_correct_above_total_rejected(self):
        with pytest.raises(ValueError):
            SimuladoArea(name="A", correct=46, total=45)

    @pytest.mark.parametrize("pct,band", [(80, "high"), (79, "medium"), (60, "medium"), (59, "low")])
    def test_performance_band(self, pct, band):
        assert performance_band(pct) == band


class TestNotesHelpers:
    def test_extract_tags_with_accents(self):
        assert extract_tags("Revisar #física e #Revolução hoje") == ["#física", "#Revolução"]

    def test_extract_tags_empty(self):
        assert extract_tags(None) == []

    def test_workspace_apply_deletion(self):
        ws = NotesWorkspace(active_note_id="n1", open_pdf_id="p1", expanded_folders=["f1", "f2"])
        assert ws.apply_deletion({"n1", "f2"}) is True
        assert ws.active_note_id is None
        assert ws.open_pdf_id == "p1"
        assert ws.expanded_folders == ["f1"]

    def test_workspace_untouched(self):
        ws = NotesWorkspace(active_note_id="n1")
        assert ws.apply_deletion({"other"}) is False
        assert ws.active_note_id == "n1"


class TestMisc:
    def test_error_cause_coerce(self):
        assert ErrorCause.coerce("Falta de atenção") == ErrorCause.ATTENTION
        assert ErrorCause.coerce("???") == ErrorCause.CONTENT

    def test_priority_rank(self):
        assert TaskPriority.HIGH.rank > TaskPriority.MEDIUM.rank > TaskPriority.LOW.rank

    def test_material_progress(self):
        material = StudyMaterial(id="m", title="Livro", subject="Física", current_chapter=1, total_chapters=3)
        assert material.progress == 33
