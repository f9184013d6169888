"""Environmental state and the named presets served by the plant backend."""

from dataclasses import dataclass

from plant.health import health_score


@dataclass(frozen=True)
class EnvironmentalState:
    moisture: float
    light: float

    @property
    def health(self) -> float:
        return health_score(self.moisture, self.light)


@dataclass(frozen=True)
class NamedState:
    name: str
    state: EnvironmentalState
    description: str


PRESET_STATES = {
    preset.name: preset
    for preset in (
        NamedState("healthy", EnvironmentalState(65, 800), "Optimal conditions"),
        NamedState("light_deprived", EnvironmentalState(60, 150), "Needs more light"),
        NamedState("dehydrated", EnvironmentalState(25, 700), "Needs watering"),
        NamedState("stressed", EnvironmentalState(20, 100), "Needs both water and light"),
        NamedState("overwatered", EnvironmentalState(90, 600), "Too much water"),
    )
}

# Used when the state source cannot be reached
FALLBACK_STATE = PRESET_STATES["healthy"]
