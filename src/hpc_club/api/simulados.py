"""Simulado routes (Pro): results, analysis, generated exams and essays."""

from fastapi import APIRouter, Body, Depends

from hpc_club.api.deps import get_simulados, require_pro
from hpc_club.models.simulado import (
    EssayRequest,
    GeneratedQuestion,
    SimuladoCreate,
    SimuladoResult,
    SimulationConfig,
    performance_band,
)
from hpc_club.models.user import User
from hpc_club.services.simulados import SimuladoService, global_average, grade_exam, target_gap

router = APIRouter(prefix="/api/simulados")
pro_user = require_pro("Simulados")


def _result_view(result: SimuladoResult) -> dict:
    return {
        **result.model_dump(mode="json"),
        "percentage": result.percentage,
        "band": performance_band(result.percentage),
        "areas": [
            {**a.model_dump(), "percentage": a.percentage, "band": performance_band(a.percentage)}
            for a in result.areas
        ],
    }


@router.get("")
async def list_simulados(
    user: User = Depends(pro_user),
    service: SimuladoService = Depends(get_simulados),
) -> dict:
    results = service.fetch(user.id)
    average = global_average(results)
    return {
        "results": [_result_view(r) for r in results],
        "global_average": average,
        "target_gap": target_gap(average),
    }


@router.get("/config")
async def exam_config(
    user: User = Depends(pro_user),
    service: SimuladoService = Depends(get_simulados),
) -> dict:
    return service.exam_config


@router.post("")
async def create_simulado(
    data: SimuladoCreate,
    user: User = Depends(pro_user),
    service: SimuladoService = Depends(get_simulados),
) -> dict:
    return _result_view(await service.create(user.id, data))


@router.post("/{simulado_id}/analysis")
async def analyze_simulado(
    simulado_id: str,
    user: User = Depends(pro_user),
    service: SimuladoService = Depends(get_simulados),
) -> dict:
    return _result_view(await service.analyze(user.id, simulado_id))


@router.delete("/{simulado_id}")
async def delete_simulado(
    simulado_id: str,
    user: User = Depends(pro_user),
    service: SimuladoService = Depends(get_simulados),
) -> dict:
    service.delete(user.id, simulado_id)
    return {"deleted": simulado_id}


@router.post("/generate")
async def generate_exam(
    config: SimulationConfig,
    user: User = Depends(pro_user),
    service: SimuladoService = Depends(get_simulados),
) -> list[dict]:
    return [q.model_dump() for q in await service.generate_exam(config)]


@router.post("/grade")
async def grade(
    questions: list[GeneratedQuestion] = Body(...),
    answers: dict[str, int] = Body(default={}),
    user: User = Depends(pro_user),
) -> dict:
    return grade_exam(questions, answers).model_dump()


@router.post("/essay")
async def correct_essay(
    request: EssayRequest,
    user: User = Depends(pro_user),
    service: SimuladoService = Depends(get_simulados),
) -> dict:
    return (await service.correct_essay(request.topic, request.text)).model_dump()
