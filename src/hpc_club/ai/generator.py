"""Content generation: study plans, exams, essays, notes and error photos."""

import re

import structlog
from pydantic import ValidationError

from hpc_club.ai import prompts
from hpc_club.ai.client import GenerativeClient
from hpc_club.exceptions import AIServiceError
from hpc_club.models.error_entry import ErrorAnalysis, ErrorCause, FlashcardDraft
from hpc_club.models.notes import NoteInsights
from hpc_club.models.planner import StudyPlanResponse
from hpc_club.models.simulado import (
    EssayCorrection,
    GeneratedQuestion,
    SimuladoResult,
    SimulationConfig,
    SimulationMode,
)

logger = structlog.get_logger()

MAX_NOTE_CHARS = 10000
_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


class ContentGenerator:
    """Single-shot generators used by the feature panels.

    Study plans, exams, essays, error photos and note drafts propagate
    AIServiceError to the caller. Note insights, note flashcards and text
    refinement degrade to empty results or the original text instead.

    Args:
        client: Shared generative client.
    """

    def __init__(self, client: GenerativeClient):
        self.client = client

    async def generate_study_plan(
        self, exam: str, subject: str, hours_per_day: float
    ) -> StudyPlanResponse:
        prompt = prompts.STUDY_PLAN_PROMPT.format(exam=exam, subject=subject, hours=hours_per_day)
        data = await self.client.complete_json([{"role": "user", "content": prompt}])
        try:
            plan = StudyPlanResponse(**data)
        except (ValidationError, TypeError):
            logger.error("study_plan_invalid", data=data)
            raise AIServiceError("Não foi possível gerar o plano no momento. Tente novamente.")
        logger.info("study_plan_generated", exam=exam, subject=subject, days=len(plan.schedule))
        return plan

    async def analyze_exam_performance(self, simulado: SimuladoResult) -> str:
        performance = ", ".join(f"{a.name}: {a.correct}/{a.total}" for a in simulado.areas)
        essay = (
            f"Redação: {simulado.essay_score}"
            if simulado.essay_score is not None
            else "Redação não informada"
        )
        prompt = prompts.EXAM_ANALYSIS_PROMPT.format(
            exam=simulado.exam_type.value, performance=performance, essay=essay
        )
        return await self.client.complete([{"role": "user", "content": prompt}], temperature=0.6)

    async def generate_exam(self, config: SimulationConfig) -> list[GeneratedQuestion]:
        marathon = config.mode == SimulationMode.MARATHON
        prompt = prompts.EXAM_GENERATION_PROMPT.format(
            count=config.count,
            exam=config.type.value,
            area=config.area,
            difficulty=config.difficulty.value,
            mode=config.mode.value.upper(),
            mode_rules=prompts.MARATHON_RULES if marathon else prompts.QUICK_RULES,
        )
        data = await self.client.complete_json([{"role": "user", "content": prompt}], temperature=0.8)
        questions = []
        for i, raw in enumerate(data.get("questions", []) if isinstance(data, dict) else []):
            try:
                question = GeneratedQuestion(**{**raw, "id": str(raw.get("id") or i + 1)})
            except (ValidationError, TypeError):
                logger.warning("exam_question_skipped", index=i)
                continue
            if len(question.options) != 5 or question.correct_option_index > 4:
                logger.warning("exam_question_malformed", index=i)
                continue
            question.subject = config.area
            questions.append(question)
        if not questions:
            raise AIServiceError("Nenhuma questão válida foi gerada.")
        logger.info("exam_generated", area=config.area, count=len(questions))
        return questions

    async def correct_essay(self, topic: str, text: str) -> EssayCorrection:
        data = await self.client.complete_json([
            {"role": "system", "content": prompts.ESSAY_PROMPT.format(topic=topic)},
            {"role": "user", "content": text},
        ], temperature=0.3)
        try:
            return EssayCorrection(**data)
        except (ValidationError, TypeError):
            logger.error("essay_correction_invalid")
            raise AIServiceError("Falha na correção por IA")

    async def analyze_note(self, content: str) -> NoteInsights:
        try:
            data = await self.client.complete_json([
                {"role": "system", "content": prompts.NOTE_ANALYSIS_PROMPT},
                {"role": "user", "content": content[:MAX_NOTE_CHARS]},
            ])
            return NoteInsights(
                summary=str(data.get("summary", "")),
                keywords=[str(k) for k in data.get("keywords", [])][:5],
            )
        except Exception:
            logger.exception("note_analysis_failed")
            return NoteInsights()

    async def generate_flashcards_from_note(self, content: str) -> list[FlashcardDraft]:
        try:
            data = await self.client.complete_json([
                {"role": "system", "content": prompts.NOTE_FLASHCARDS_PROMPT},
                {"role": "user", "content": content[:MAX_NOTE_CHARS]},
            ])
            return [FlashcardDraft(**card) for card in data.get("flashcards", [])][:10]
        except Exception:
            logger.exception("note_flashcards_failed")
            return []

    async def refine_text(self, text: str, instruction: str) -> str:
        directive = prompts.REFINE_INSTRUCTIONS.get(instruction)
        if directive is None:
            raise AIServiceError(f"Instrução desconhecida: {instruction}")
        try:
            result = await self.client.complete([
                {"role": "system", "content": f"{directive}\n\n{prompts.REFINE_SUFFIX}"},
                {"role": "user", "content": text},
            ])
            return result or text
        except Exception:
            logger.exception("refine_text_failed", instruction=instruction)
            return text

    async def generate_note_content(self, topic: str) -> str:
        prompt = prompts.NOTE_CONTENT_PROMPT.format(topic=topic)
        return await self.client.complete([{"role": "user", "content": prompt}])

    async def analyze_error_image(self, image_base64: str) -> ErrorAnalysis:
        """Read a photographed question and suggest cause and flashcards."""
        data_b64 = _DATA_URL_PREFIX.sub("", image_base64.strip())
        data = await self.client.complete_json([{
            "role": "user",
            "content": [
                {"type": "text", "text": prompts.ERROR_IMAGE_PROMPT},
                {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{data_b64}"}},
            ],
        }], temperature=0.3)
        try:
            return ErrorAnalysis(
                description=str(data["description"]),
                subject=str(data.get("subject") or "Geral"),
                cause=ErrorCause.coerce(str(data.get("cause", ""))),
                flashcards=[FlashcardDraft(**c) for c in data.get("flashcards", [])][:2],
            )
        except (KeyError, ValidationError, TypeError):
            logger.error("error_image_analysis_invalid")
            raise AIServiceError("Não foi possível analisar a imagem.")
