from .bot import *
from .checks import *
from .config import *
from .errors import *
