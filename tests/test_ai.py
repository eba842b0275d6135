"""Tests for the generative client and content generator."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from conftest import completion
from hpc_club.ai.client import GenerativeClient
from hpc_club.ai.generator import ContentGenerator
from hpc_club.exceptions import AIServiceError, AIUnavailableError
from hpc_club.models.error_entry import ErrorCause
from hpc_club.models.notes import NoteInsights
from hpc_club.models.simulado import (
    ExamType,
    SimuladoArea,
    SimuladoResult,
    SimulationConfig,
    SimulationMode,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _rate_limited():
    return openai.RateLimitError(
        "rate limited", response=httpx.Response(429, request=_REQUEST), body=None
    )


def _client(*responses):
    client = GenerativeClient(api_key="sk-test", retry_delay=2.0, max_retries=2)
    client.client = MagicMock()
    client.client.chat.completions.create = AsyncMock(side_effect=list(responses))
    return client


def _generator(*responses):
    return ContentGenerator(_client(*responses))


def _question(**overrides):
    question = {
        "text": "Quanto é 2+2?",
        "options": ["1", "2", "3", "4", "5"],
        "correct_option_index": 3,
        "explanation": "Soma simples.",
    }
    question.update(overrides)
    return question


class TestGenerativeClient:
    async def test_no_key_is_unavailable(self):
        client = GenerativeClient(api_key="")
        assert not client.enabled
        with pytest.raises(AIUnavailableError):
            await client.complete([{"role": "user", "content": "oi"}])

    async def test_retries_rate_limit_with_backoff(self):
        client = _client(_rate_limited(), _rate_limited(), completion(" ok "))
        with patch("hpc_club.ai.client.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await client.complete([]) == "ok"
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 4.0]

    async def test_rate_limit_exhausted(self):
        client = _client(_rate_limited(), _rate_limited(), _rate_limited())
        with patch("hpc_club.ai.client.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(AIServiceError):
                await client.complete([])

    async def test_other_errors_not_retried(self):
        client = _client(openai.APIConnectionError(request=_REQUEST))
        with pytest.raises(AIServiceError):
            await client.complete([])
        assert client.client.chat.completions.create.await_count == 1

    async def test_empty_content(self):
        with pytest.raises(AIServiceError):
            await _client(completion("")).complete([])

    async def test_complete_json(self):
        client = _client(completion('{"a": 1}'))
        assert await client.complete_json([]) == {"a": 1}
        kwargs = client.client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    async def test_invalid_json(self):
        with pytest.raises(AIServiceError):
            await _client(completion("not json")).complete_json([])


class TestStudyPlan:
    async def test_parses_plan(self):
        plan = {
            "weekly_goal": "Dominar funções",
            "strategy_note": "Revise diariamente.",
            "schedule": [{"day": "Segunda", "focus": "Funções", "tasks": ["Lista 1"], "tip": "Foque"}],
        }
        result = await _generator(completion(json.dumps(plan))).generate_study_plan("ENEM", "Matemática", 2)
        assert result.schedule[0].day == "Segunda"

    async def test_invalid_plan(self):
        with pytest.raises(AIServiceError):
            await _generator(completion('{"schedule": []}')).generate_study_plan("ENEM", "Matemática", 2)


class TestGenerateExam:
    async def test_skips_malformed_questions(self):
        payload = {"questions": [
            _question(id="q1"),
            _question(options=["a", "b"]),
            {"text": "sem opções"},
            _question(correct_option_index=7),
            _question(),
        ]}
        config = SimulationConfig(area="Matemática", count=5, mode=SimulationMode.MARATHON)
        questions = await _generator(completion(json.dumps(payload))).generate_exam(config)
        assert [q.id for q in questions] == ["q1", "5"]
        assert all(q.subject == "Matemática" for q in questions)

    async def test_no_valid_questions(self):
        config = SimulationConfig(area="Física")
        with pytest.raises(AIServiceError):
            await _generator(completion('{"questions": []}')).generate_exam(config)

    async def test_prompt_mentions_mode(self):
        gen = _generator(completion(json.dumps({"questions": [_question()]})))
        await gen.generate_exam(SimulationConfig(type=ExamType.UFRGS, area="Física", count=1))
        prompt = gen.client.client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert "UFRGS" in prompt
        assert "RÁPIDO" in prompt


class TestExamAnalysis:
    async def test_analysis_text(self):
        gen = _generator(completion("Bom desempenho em Humanas."))
        simulado = SimuladoResult(id="s", exam_type=ExamType.ENEM, areas=[
            SimuladoArea(name="Humanas", correct=40, total=45),
        ])
        assert await gen.analyze_exam_performance(simulado) == "Bom desempenho em Humanas."
        prompt = gen.client.client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert "Humanas: 40/45" in prompt
        assert "Redação não informada" in prompt


class TestEssay:
    async def test_correct_essay(self):
        payload = {
            "score": 880,
            "competencies": {"c1": 180, "c2": 160, "c3": 180, "c4": 180, "c5": 180},
            "comments": ["Boa argumentação."],
            "improved_version": "Texto",
        }
        result = await _generator(completion(json.dumps(payload))).correct_essay("Tema", "Texto")
        assert result.score == 880
        assert result.competencies.c2 == 160

    async def test_invalid_essay(self):
        with pytest.raises(AIServiceError):
            await _generator(completion('{"score": 5000}')).correct_essay("Tema", "Texto")


class TestNoteHelpers:
    async def test_analyze_note(self):
        payload = {"summary": "Resumo", "keywords": list("abcdefg")}
        insights = await _generator(completion(json.dumps(payload))).analyze_note("conteúdo")
        assert insights.summary == "Resumo"
        assert len(insights.keywords) == 5

    async def test_analyze_note_failure_is_empty(self):
        gen = _generator(openai.APIConnectionError(request=_REQUEST))
        assert await gen.analyze_note("conteúdo") == NoteInsights()

    async def test_flashcards_failure_is_empty(self):
        assert await _generator(completion("nope")).generate_flashcards_from_note("x") == []

    async def test_flashcards(self):
        payload = {"flashcards": [{"front": "Q", "back": "A"}]}
        cards = await _generator(completion(json.dumps(payload))).generate_flashcards_from_note("x")
        assert cards[0].back == "A"

    async def test_refine_failure_returns_original(self):
        gen = _generator(openai.APIConnectionError(request=_REQUEST))
        assert await gen.refine_text("texto original", "shorter") == "texto original"

    async def test_refine_unknown_instruction(self):
        with pytest.raises(AIServiceError):
            await _generator().refine_text("texto", "translate")

    async def test_refine(self):
        assert await _generator(completion("texto curto")).refine_text("texto longo", "shorter") == "texto curto"


class TestErrorImage:
    async def test_strips_data_url_prefix(self):
        payload = {
            "description": "Errou o sinal",
            "subject": "Física",
            "cause": "falta de atenção",
            "flashcards": [{"front": "Q1", "back": "A1"}, {"front": "Q2", "back": "A2"}, {"front": "Q3", "back": "A3"}],
        }
        gen = _generator(completion(json.dumps(payload)))
        analysis = await gen.analyze_error_image("data:image/jpeg;base64,QUJD")
        assert analysis.cause == ErrorCause.ATTENTION
        assert len(analysis.flashcards) == 2
        content = gen.client.client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert content[1]["image_url"]["url"] == "data:image/png;base64,QUJD"

    async def test_missing_description(self):
        with pytest.raises(AIServiceError):
            await _generator(completion('{"subject": "Física"}')).analyze_error_image("QUJD")
