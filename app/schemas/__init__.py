# Schemas package (re-export feature modules for stable imports)
from .common.common import *
from .users.user import *
from .auth.auth import *
