from .embeds import *
from .log import *
from .misc import *
