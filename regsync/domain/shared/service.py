from dataclasses import dataclass
from typing import dataclass_transform


@dataclass_transform()
class Service:
    """Base class for domain services.

    Subclasses are turned into dataclasses: collaborators are declared as
    annotated class attributes and injected through the generated ``__init__``.
    """

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        dataclass(cls)
