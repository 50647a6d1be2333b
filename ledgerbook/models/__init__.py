# Models Package
# MVC Model Layer - Pydantic Models

from .account import *
from .approval import *
from .voucher import *
from .ledger import *
from .template import *
from .recurring import *
from .reconciliation import *
from .requests import *
from .response import *
from .health import *
