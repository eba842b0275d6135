"""Top-level view routing and dashboard tab gating."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from hpc_club.exceptions import NotFoundError, SubscriptionRequired
from hpc_club.models.user import User


class ViewState(StrEnum):
    LANDING = "landing"
    AUTH = "auth"
    DASHBOARD = "dashboard"


def resolve_view(user: User | None, requested: ViewState | None = None) -> ViewState:
    """Pick the top-level view: signed-in users always land on the dashboard."""
    if user is not None:
        return ViewState.DASHBOARD
    if requested == ViewState.AUTH:
        return ViewState.AUTH
    return ViewState.LANDING


class DashboardTab(BaseModel):
    id: str
    label: str
    restricted: bool = False


TABS: list[DashboardTab] = [
    DashboardTab(id="Dashboard", label="Dashboard"),
    DashboardTab(id="Planner", label="Planner"),
    DashboardTab(id="Notas", label="Notas"),
    DashboardTab(id="Tutores", label="Tutores IA", restricted=True),
    DashboardTab(id="Lista de Erros", label="Erros", restricted=True),
    DashboardTab(id="Flashcards", label="Flashcards", restricted=True),
    DashboardTab(id="Simulados", label="Simulados", restricted=True),
    DashboardTab(id="Analytics", label="Analytics", restricted=True),
    DashboardTab(id="Perfil", label="Meu Perfil"),
    DashboardTab(id="Configurações", label="Configurações"),
]

_TABS_BY_ID = {tab.id: tab for tab in TABS}


def tabs_for(user: User) -> list[dict]:
    """Tab list with a lock flag for the user's tier."""
    return [
        {**tab.model_dump(), "locked": tab.restricted and not user.is_pro}
        for tab in TABS
    ]


def open_tab(user: User, tab_id: str) -> DashboardTab:
    """Return the tab if the user may open it.

    Raises:
        NotFoundError: Unknown tab id.
        SubscriptionRequired: Restricted tab on the free tier.
    """
    tab = _TABS_BY_ID.get(tab_id)
    if tab is None:
        raise NotFoundError(f"Aba desconhecida: {tab_id}")
    if tab.restricted and not user.is_pro:
        raise SubscriptionRequired(tab.label)
    return tab


def greeting(now: datetime | None = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 12:
        return "Bom dia"
    if hour < 18:
        return "Boa tarde"
    return "Boa noite"
