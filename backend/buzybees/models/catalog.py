"""
Catalog Models
Provider services and their bookable options
"""

import json
import logging
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from buzybees.models.common import BaseDocument, generate_id

logger = logging.getLogger(__name__)

# Item key meaning "the service itself" rather than one of its options
BASE_ITEM_KEY = "base"


class ServiceOption(BaseModel):
    """Priced option belonging to exactly one service"""
    option_id: str = Field(default_factory=lambda: generate_id("opt"))
    service_id: str
    name: str
    description: Optional[str] = None
    price: int = Field(ge=0)
    duration_minutes: int = Field(default=0, ge=0)
    sort_order: int = 0
    is_active: bool = True


class Service(BaseDocument):
    """Service document model"""
    service_id: str = Field(default_factory=lambda: generate_id("svc"))
    provider_id: str
    name: str
    description: Optional[str] = None

    # Pricing and duration of the base service
    base_price: int = Field(ge=0)
    base_duration_minutes: int = Field(default=0, ge=0)

    options: list[ServiceOption] = Field(default_factory=list)

    # Staff explicitly assigned to perform this service
    assigned_staff_ids: list[str] = Field(default_factory=list)

    is_active: bool = True

    @field_validator("assigned_staff_ids", mode="before")
    @classmethod
    def normalize_assigned_staff(cls, value: Any) -> list[str]:
        """Accept null, lists, or JSON-encoded lists from legacy rows"""
        if value is None:
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                logger.warning(f"Unparsable assigned_staff_ids value: {value!r}")
                return []
        if not isinstance(value, (list, tuple)):
            return []
        return [str(staff_id) for staff_id in value]

    def find_option(self, option_id: str) -> Optional[ServiceOption]:
        """Look up an active option by id"""
        for option in self.options:
            if option.option_id == option_id and option.is_active:
                return option
        return None

    @property
    def sorted_options(self) -> list[ServiceOption]:
        """Active options in display order"""
        return sorted(
            (o for o in self.options if o.is_active),
            key=lambda o: o.sort_order
        )


class ServiceCatalog(BaseModel):
    """Catalog of one provider, loaded once and read-only to the engine"""
    provider_id: str
    services: list[Service] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_names(self) -> "ServiceCatalog":
        seen = set()
        for service in self.services:
            if service.name in seen:
                raise ValueError(f"Duplicate service name in catalog: {service.name}")
            seen.add(service.name)
        return self

    def get_service(self, name: str) -> Optional[Service]:
        """Find a service by its (unique) name"""
        for service in self.services:
            if service.name == name:
                return service
        return None

    def staff_assignments(self) -> dict[str, list[str]]:
        """Map service name to its explicitly assigned staff ids"""
        return {s.name: list(s.assigned_staff_ids) for s in self.services}

    def get_option(self, service_name: str, option_id: str) -> Optional[ServiceOption]:
        service = self.get_service(service_name)
        return service.find_option(option_id) if service else None
