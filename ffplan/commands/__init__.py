from .config import config
from .doctor import doctor
from .features import features
from .init import init
from .log import log
from .resolve import resolve
from .version import version
