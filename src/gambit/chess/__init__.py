"""Chess games played in channels: sessions, their registry, the engine bridge and board rendering."""

from .engine import *
from .registry import *
from .render import *
from .rules import *
from .session import *
