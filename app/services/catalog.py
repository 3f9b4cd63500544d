from typing import NamedTuple

DEFAULT_DURATION_MINUTES = 30
UNKNOWN_SERVICE_LABEL = "Unknown service"


class ServiceType(NamedTuple):
    id: int
    label: str
    duration_minutes: int


SERVICES: dict[int, ServiceType] = {
    s.id: s
    for s in (
        ServiceType(0, "Brijanje", 10),
        ServiceType(1, "Šišanje do kože", 10),
        ServiceType(2, "Šišanje", 15),
        ServiceType(3, "Fade", 20),
        ServiceType(4, "Brijanje glave", 15),
        ServiceType(5, "Šišanje + Brijanje", 30),
        ServiceType(6, "Fade + Brijanje", 30),
    )
}


def _lookup(service_type: int | str | None) -> ServiceType | None:
    if service_type is None or isinstance(service_type, bool):
        return None
    try:
        key = int(service_type)
    except (TypeError, ValueError):
        return None
    return SERVICES.get(key)


def duration_of(service_type: int | str | None) -> int:
    """Minutes the service occupies the chair; unknown ids fall back to 30."""
    service = _lookup(service_type)
    return service.duration_minutes if service else DEFAULT_DURATION_MINUTES


def label_of(service_type: int | str | None) -> str:
    service = _lookup(service_type)
    return service.label if service else UNKNOWN_SERVICE_LABEL


def is_known(service_type: int | str | None) -> bool:
    return _lookup(service_type) is not None


def services() -> list[ServiceType]:
    return sorted(SERVICES.values())
