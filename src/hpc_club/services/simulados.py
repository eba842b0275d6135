"""Simulados: scored mock exams, AI performance analysis and generated exams."""

import structlog

from hpc_club.ai.generator import ContentGenerator
from hpc_club.config import load_exam_config
from hpc_club.exceptions import AIServiceError, NotFoundError, ValidationFailed
from hpc_club.models.planner import today_str
from hpc_club.models.simulado import (
    EssayCorrection,
    ExamGrade,
    ExamType,
    GeneratedQuestion,
    QuestionVerdict,
    SimuladoArea,
    SimuladoCreate,
    SimuladoResult,
    SimulationConfig,
    percentage,
)
from hpc_club.storage.tables import TableStore

logger = structlog.get_logger()

SIMULADOS_TABLE = "simulados"
TARGET_PERCENTAGE = 85


def global_average(results: list[SimuladoResult]) -> float:
    """Mean of the per-result percentages, 0 with no results."""
    if not results:
        return 0.0
    return sum(r.percentage for r in results) / len(results)


def target_gap(average: float, target: int = TARGET_PERCENTAGE) -> int:
    """Points still missing to reach ``target`` (never negative)."""
    return max(0, target - round(average))


def grade_exam(questions: list[GeneratedQuestion], answers: dict[str, int]) -> ExamGrade:
    """Score chosen option indexes against the answer key; unanswered is wrong."""
    verdicts = []
    for q in questions:
        chosen = answers.get(q.id)
        verdicts.append(QuestionVerdict(
            question_id=q.id,
            chosen=chosen,
            correct_option_index=q.correct_option_index,
            is_correct=chosen is not None and chosen == q.correct_option_index,
        ))
    correct = sum(1 for v in verdicts if v.is_correct)
    return ExamGrade(
        correct=correct,
        total=len(questions),
        percentage=percentage(correct, len(questions)),
        verdicts=verdicts,
    )


class SimuladoService:
    """Stores simulado results and runs the AI helpers around them.

    Args:
        store: Table store.
        generator: AI generator; None disables analysis.
        exam_config: Area layout per exam type, defaults to config/exams.yaml.
    """

    def __init__(
        self,
        store: TableStore,
        generator: ContentGenerator | None = None,
        exam_config: dict | None = None,
    ):
        self.store = store
        self.generator = generator
        self.exam_config = exam_config if exam_config is not None else load_exam_config()

    def build_areas(self, exam_type: ExamType, correct_by_area: dict[str, int]) -> list[SimuladoArea]:
        layout = self.exam_config.get(exam_type.value)
        if not layout or not layout.get("areas"):
            raise ValidationFailed("exam_type", f"Tipo de prova sem áreas configuradas: {exam_type.value}")
        total = int(layout["total_per_area"])
        unknown = set(correct_by_area) - set(layout["areas"])
        if unknown:
            raise ValidationFailed("correct_by_area", f"Área desconhecida: {sorted(unknown)[0]}")

        areas = []
        for name in layout["areas"]:
            correct = correct_by_area.get(name, 0)
            if not 0 <= correct <= total:
                raise ValidationFailed(
                    "correct_by_area", f"{name}: acertos devem estar entre 0 e {total}."
                )
            areas.append(SimuladoArea(name=name, correct=correct, total=total))
        return areas

    def fetch(self, user_id: str) -> list[SimuladoResult]:
        rows = self.store.select(SIMULADOS_TABLE, user_id, order_by="created_at", descending=True)
        return [SimuladoResult(**r) for r in rows]

    def get(self, user_id: str, simulado_id: str) -> SimuladoResult:
        row = self.store.get(SIMULADOS_TABLE, user_id, simulado_id)
        if row is None:
            raise NotFoundError("Simulado não encontrado.")
        return SimuladoResult(**row)

    async def create(self, user_id: str, data: SimuladoCreate) -> SimuladoResult:
        """Save a result, then attach an AI analysis when possible.

        A failed analysis leaves the saved result without one.
        """
        areas = self.build_areas(data.exam_type, data.correct_by_area)
        row = self.store.insert(SIMULADOS_TABLE, user_id, {
            "exam_type": data.exam_type.value,
            "areas": [a.model_dump() for a in areas],
            "essay_score": data.essay_score,
            "ai_analysis": None,
            "date": today_str(),
        })
        result = SimuladoResult(**row)
        logger.info(
            "simulado_created",
            user_id=user_id,
            simulado_id=result.id,
            exam_type=result.exam_type.value,
            percentage=result.percentage,
        )
        if data.analyze and self.generator is not None:
            try:
                result = await self.analyze(user_id, result.id)
            except AIServiceError as e:
                logger.warning("simulado_analysis_skipped", simulado_id=result.id, error=e.message)
        return result

    async def analyze(self, user_id: str, simulado_id: str) -> SimuladoResult:
        """Run the AI analysis and store it on the row (only ``ai_analysis`` changes)."""
        if self.generator is None:
            raise AIServiceError("Análise por IA indisponível.")
        simulado = self.get(user_id, simulado_id)
        analysis = await self.generator.analyze_exam_performance(simulado)
        row = self.store.update(SIMULADOS_TABLE, user_id, simulado_id, {"ai_analysis": analysis})
        if row is None:
            raise NotFoundError("Simulado não encontrado.")
        return SimuladoResult(**row)

    def delete(self, user_id: str, simulado_id: str) -> None:
        if not self.store.delete(SIMULADOS_TABLE, user_id, simulado_id):
            raise NotFoundError("Simulado não encontrado.")

    async def generate_exam(self, config: SimulationConfig) -> list[GeneratedQuestion]:
        if self.generator is None:
            raise AIServiceError("Geração de simulados indisponível.")
        return await self.generator.generate_exam(config)

    async def correct_essay(self, topic: str, text: str) -> EssayCorrection:
        if self.generator is None:
            raise AIServiceError("Correção por IA indisponível.")
        if not text.strip():
            raise ValidationFailed("text", "Escreva sua redação antes de enviar.")
        return await self.generator.correct_essay(topic.strip() or "Tema livre", text)
