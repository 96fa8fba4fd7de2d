"""Scenario catalog and courtroom themes.

The catalog is static and read-only once loaded. It ships with the
built-in hearings below and can be replaced by a JSON file at startup.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from courtroom.lib.exceptions import (
    ScenarioNotFoundError,
    ThemeNotFoundError,
    ValidationError,
)
from courtroom.lib.models import (
    DEFAULT_THEME_KEY,
    CourtroomTheme,
    OpeningStatement,
    Scenario,
    Speaker,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Built-in Scenarios
# =============================================================================

SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        key="bail_application",
        title="Bail Application Hearing",
        description=(
            "Argue for or against a client's pre-trial release in this "
            "high-stakes bail hearing."
        ),
        opening_statement=OpeningStatement(
            speaker=Speaker.DEFENSE,
            dialogue=(
                "Your Honor, my client has deep roots in the community and a "
                "stable job. He is not a flight risk and deserves to be granted bail."
            ),
        ),
    ),
    Scenario(
        key="landlord_tenant_dispute",
        title="Landlord-Tenant Dispute",
        description=(
            "Represent either the landlord or the tenant in an unjust eviction "
            "case. Argue based on rights and rental agreements."
        ),
        opening_statement=OpeningStatement(
            speaker=Speaker.DEFENSE,
            dialogue=(
                "Your Honor, I have always paid my rent on time. This eviction is "
                "retaliatory because I reported a safety violation. I have the "
                "receipts right here."
            ),
        ),
    ),
)


# =============================================================================
# Built-in Themes
# =============================================================================

COURTROOM_THEMES: tuple[CourtroomTheme, ...] = (
    CourtroomTheme(
        key=DEFAULT_THEME_KEY,
        name="Classic Mahogany",
        description=(
            "A traditional and stately courtroom with dark wood finishes for a "
            "formal atmosphere."
        ),
    ),
    CourtroomTheme(
        key="modern_metropolis",
        name="Modern Metropolis",
        description=(
            "A sleek, contemporary setting with a stunning city skyline view, "
            "perfect for high-stakes corporate cases."
        ),
    ),
    CourtroomTheme(
        key="district_court",
        name="District Court",
        description=(
            "A clean, minimalist design that reflects a standard, public "
            "courtroom for everyday legal practice."
        ),
    ),
)


# =============================================================================
# Catalog
# =============================================================================


class CatalogFile(BaseModel):
    """Shape of an on-disk catalog."""

    scenarios: list[Scenario]
    themes: list[CourtroomTheme] = Field(default_factory=lambda: list(COURTROOM_THEMES))


class ScenarioCatalog:
    """Read-only lookup over scenarios and themes."""

    def __init__(
        self,
        scenarios: tuple[Scenario, ...] | list[Scenario] = SCENARIOS,
        themes: tuple[CourtroomTheme, ...] | list[CourtroomTheme] = COURTROOM_THEMES,
    ):
        self._scenarios: dict[str, Scenario] = {}
        for scenario in scenarios:
            if scenario.key in self._scenarios:
                raise ValidationError(
                    f"Duplicate scenario key: {scenario.key}",
                    field="key",
                    value=scenario.key,
                )
            self._scenarios[scenario.key] = scenario

        self._themes: dict[str, CourtroomTheme] = {t.key: t for t in themes}
        if not self._themes:
            raise ValidationError("Catalog needs at least one theme", field="themes")

    def list_scenarios(self) -> list[Scenario]:
        return list(self._scenarios.values())

    def get_scenario(self, key: str) -> Scenario:
        try:
            return self._scenarios[key]
        except KeyError:
            raise ScenarioNotFoundError(key)

    def list_themes(self) -> list[CourtroomTheme]:
        return list(self._themes.values())

    def get_theme(self, key: str) -> CourtroomTheme:
        try:
            return self._themes[key]
        except KeyError:
            raise ThemeNotFoundError(key)

    @property
    def default_theme(self) -> str:
        """The built-in default when present, else the first theme listed."""
        if DEFAULT_THEME_KEY in self._themes:
            return DEFAULT_THEME_KEY
        return next(iter(self._themes))


def load_catalog(path: Path | None = None) -> ScenarioCatalog:
    """
    Load the scenario catalog.

    Args:
        path: Optional JSON file with "scenarios" and "themes" arrays.
            The built-in catalog is used when omitted.

    Returns:
        ScenarioCatalog
    """
    if path is None:
        return ScenarioCatalog()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        parsed = CatalogFile.model_validate(data)
    except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
        raise ValidationError(f"Cannot read catalog {path}: {e}", field="scenario_file")

    logger.info(f"Loaded {len(parsed.scenarios)} scenarios from {path}")
    return ScenarioCatalog(parsed.scenarios, parsed.themes)
