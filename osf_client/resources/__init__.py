"""Resource classes built on the authenticated transport."""

from .base import BaseResource
from .files import Files
from .nodes import Nodes
from .users import Users

__all__ = ["BaseResource", "Files", "Nodes", "Users"]
