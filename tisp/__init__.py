from .compyler import LLVMCodeGen, lower, verify_module
from .errors import TispError
from .lexer import Token, tokenize
from .parser import Builtin, Call, Constant, Ident, Parser, While, build_tree

__version__ = '0.1.0'
