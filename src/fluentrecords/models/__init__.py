from .attributes import AttributeBag
from .base import BaseModel, IblockModel
from .element import ElementModel
from .section import SectionModel
from .user import UserModel

__all__ = ["AttributeBag", "BaseModel", "ElementModel", "IblockModel", "SectionModel", "UserModel"]
