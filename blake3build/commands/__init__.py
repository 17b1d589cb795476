from .config import config
from .configure import configure
from .detect import detect
from .log import log
from .version import version
