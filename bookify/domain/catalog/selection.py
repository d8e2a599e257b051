"""Cart-like selection of a provider's services"""

import logging
from dataclasses import dataclass, field

from .pricing import format_duration, total_minutes, total_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectedService:
    id: str
    name: str
    price: str
    duration: str

    @classmethod
    def from_model(cls, service) -> "SelectedService":
        return cls(id=service.id, name=service.name, price=service.price, duration=service.duration)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "price": self.price, "duration": self.duration}


@dataclass
class ServiceSelection:
    """
    Services picked for one booking, unique by id and kept in pick order.

    Adding an id that is already selected leaves the selection unchanged and
    records an "already selected" notice for the caller to show.
    """

    items: list[SelectedService] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)

    def __contains__(self, service_id: str) -> bool:
        return any(item.id == service_id for item in self.items)

    def __len__(self) -> int:
        return len(self.items)

    def add(self, service: SelectedService) -> bool:
        if service.id in self:
            self.notices.append(f"{service.name} is already selected.")
            logger.debug(f"Duplicate service {service.id} ignored")
            return False
        self.items.append(service)
        return True

    def remove(self, service_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != service_id]
        return len(self.items) != before

    @property
    def total_price(self) -> float:
        return total_price(item.price for item in self.items)

    @property
    def total_minutes(self) -> int:
        return total_minutes(item.duration for item in self.items)

    @property
    def estimated_duration(self) -> str:
        return format_duration(self.total_minutes)

    def to_list(self) -> list[dict]:
        return [item.to_dict() for item in self.items]
