"""Pydantic v2 schemas shared between the API and its front end."""

from .projects import *  # noqa: F401,F403
from .payments import *  # noqa: F401,F403
from .auth import *  # noqa: F401,F403
from .portfolio import *  # noqa: F401,F403
from .estimates import *  # noqa: F401,F403
