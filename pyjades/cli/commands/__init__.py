from .sign import *
