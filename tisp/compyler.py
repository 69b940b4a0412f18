import logging

import llvmlite.binding as llvm
import llvmlite.ir as ir

from .errors import (
    InvalidBinding,
    InvalidCondition,
    InvalidOperand,
    MalformedExpression,
    UndefinedVariable,
    UnknownFunction,
    VerificationFailure,
)
from .parser import Builtin, Call, Constant, While

logger = logging.getLogger(__name__)

DOUBLE = ir.DoubleType()
BOOL = ir.IntType(1)
INT8 = ir.IntType(8)
INT32 = ir.IntType(32)

ARITHMETIC = {'PLUS', 'MINUS', 'MUL', 'DIV'}
COMPARISONS = {'GT': '>', 'LT': '<'}


def verify_module(module):
    """Hand the textual IR to LLVM and run its verifier on it."""
    try:
        llvm_module = llvm.parse_assembly(str(module))
        llvm_module.verify()
    except RuntimeError as e:
        raise VerificationFailure(f'Generated IR failed verification:\n{e}') from e
    return llvm_module


class LLVMCodeGen:
    def __init__(self, name='tisp'):
        self.module = ir.Module(name=name)
        self.module.triple = llvm.get_default_triple()
        self.builder = None
        self.func = None
        self.builtins = {}
        self.variables = {}
        self.strings = {}

    def lower(self, program):
        try:
            self.create_main(program)
        except RecursionError as e:
            raise MalformedExpression('expression nested too deeply') from e
        verify_module(self.module)
        return self.module

    def create_main(self, program):
        logger.info('Generating LLVM IR')
        func_type = ir.FunctionType(INT32, [])
        self.func = ir.Function(self.module, func_type, name='main')
        block = self.func.append_basic_block(name='entry')
        self.builder = ir.IRBuilder(block)
        self.add_printf()

        for node in program:
            self.generate_code(node)

        self.builder.ret(ir.Constant(INT32, 0))

    def add_printf(self):
        printf_type = ir.FunctionType(INT32, [INT8.as_pointer()], var_arg=True)
        self.builtins['print'] = ir.Function(self.module, printf_type, name='printf')

    def generate_code(self, node):
        if isinstance(node, Constant):
            return self.generate_constant(node.value)
        elif isinstance(node, Builtin):
            return self.generate_variable(node.ident)
        elif isinstance(node, Call):
            return self.generate_call(node)
        elif isinstance(node, While):
            return self.generate_while(node)
        raise MalformedExpression(f'Cannot compile {node!r}')

    def generate_constant(self, value):
        # bool first, it is an int subclass
        if isinstance(value, bool):
            return ir.Constant(BOOL, int(value))
        elif isinstance(value, float):
            return ir.Constant(DOUBLE, value)
        elif isinstance(value, str):
            return self.global_string(value)
        raise MalformedExpression(f'Unsupported constant: {value!r}')

    def global_string(self, text, prefix='str'):
        if text in self.strings:
            return self.strings[text]

        data = bytearray(text.encode('utf8')) + b'\00'
        str_type = ir.ArrayType(INT8, len(data))
        gvar = ir.GlobalVariable(self.module, str_type, name=self.module.get_unique_name(prefix))
        gvar.linkage = 'private'
        gvar.global_constant = True
        gvar.unnamed_addr = True
        gvar.initializer = ir.Constant(str_type, data)

        # constant gep, valid in every block
        zero = ir.Constant(INT32, 0)
        ptr = gvar.gep([zero, zero])
        self.strings[text] = ptr
        return ptr

    def generate_variable(self, ident):
        if ident.kind != 'VAR':
            raise MalformedExpression(f"'{ident}' cannot be used as a value")
        slot = self.variables.get(ident.value)
        if slot is None:
            raise UndefinedVariable(ident.value)
        return self.builder.load(slot, name=ident.value)

    def generate_call(self, node):
        if not (isinstance(node.head, Builtin) and node.head.ident.is_callable):
            raise MalformedExpression(f'Cannot call {node.head!r}')

        ident = node.head.ident
        logger.debug(f'Lowering call to {ident} with {len(node.args)} arguments')
        if ident.kind in ARITHMETIC:
            return self.generate_arithmetic(ident, node.args)
        elif ident.kind in COMPARISONS:
            if len(node.args) != 2:
                raise MalformedExpression(f"'{ident}' takes exactly 2 arguments, got {len(node.args)}")
            return self.generate_comparison(ident, node.args[0], node.args[1])
        elif ident.kind == 'LET':
            return self.generate_let(node.args)
        elif ident.kind == 'PRINT':
            return self.generate_print(node.args)
        raise UnknownFunction(ident.value)

    def generate_operand(self, ident, node):
        value = self.generate_code(node)
        if value is None or value.type != DOUBLE:
            raise InvalidOperand(f"'{ident}' expects numbers, got {node!r}")
        return value

    def generate_arithmetic(self, ident, args):
        if not args:
            raise MalformedExpression(f"'{ident}' needs at least one argument")

        # strict left fold: (- a b c) is (a - b) - c
        result = self.generate_operand(ident, args[0])
        for arg in args[1:]:
            right = self.generate_operand(ident, arg)
            if ident.kind == 'PLUS':
                result = self.builder.fadd(result, right)
            elif ident.kind == 'MINUS':
                result = self.builder.fsub(result, right)
            elif ident.kind == 'MUL':
                result = self.builder.fmul(result, right)
            elif ident.kind == 'DIV':
                result = self.builder.fdiv(result, right)
        return result

    def generate_comparison(self, ident, lhs, rhs):
        left = self.generate_operand(ident, lhs)
        right = self.generate_operand(ident, rhs)
        return self.builder.fcmp_ordered(COMPARISONS[ident.kind], left, right)

    def generate_let(self, args):
        if len(args) != 2:
            raise InvalidBinding(f'let takes a variable and a value, got {len(args)} arguments')

        target, expr = args
        if not (isinstance(target, Builtin) and target.ident.kind == 'VAR'):
            raise InvalidBinding(f'let can only bind a variable, not {target!r}')

        name = target.ident.value
        value = self.generate_code(expr)
        if value is None:
            raise InvalidBinding(f'Cannot bind {name} to an expression without a value')

        slot = self.variables.get(name)
        if slot is None:
            # every slot lives in the entry block
            with self.builder.goto_entry_block():
                slot = self.builder.alloca(value.type, name=name)
            self.variables[name] = slot
        elif slot.allocated_type != value.type:
            raise InvalidBinding(f'Cannot rebind {name} from {slot.allocated_type} to {value.type}')

        self.builder.store(value, slot)
        return value

    def generate_print(self, args):
        values = []
        placeholders = []
        for arg in args:
            value = self.generate_code(arg)
            if value is None:
                raise MalformedExpression(f'Cannot print an expression without a value: {arg!r}')
            if value.type == DOUBLE:
                placeholders.append('%f')
            elif isinstance(value.type, ir.PointerType):
                placeholders.append('%s')
            elif isinstance(value.type, ir.IntType):
                if value.type.width < 32:
                    value = self.builder.zext(value, INT32)
                placeholders.append('%d')
            else:
                raise MalformedExpression(f'Cannot print a value of type {value.type}')
            values.append(value)

        fmt = self.global_string(' '.join(placeholders) + '\n', prefix='fmt')
        return self.builder.call(self.builtins['print'], [fmt] + values)

    def generate_while(self, node):
        condition = node.condition
        if not (isinstance(condition, Call)
                and isinstance(condition.head, Builtin)
                and condition.head.ident.kind in COMPARISONS
                and len(condition.args) == 2):
            raise InvalidCondition(f'while condition must compare two values with > or <, got {condition!r}')

        cond_block = self.func.append_basic_block(name='while.cond')
        body_block = self.func.append_basic_block(name='while.body')
        after_block = self.func.append_basic_block(name='while.end')

        self.builder.branch(cond_block)

        self.builder.position_at_end(cond_block)
        lhs, rhs = condition.args
        test = self.generate_comparison(condition.head.ident, lhs, rhs)
        self.builder.cbranch(test, body_block, after_block)

        self.builder.position_at_end(body_block)
        for expr in node.body:
            self.generate_code(expr)
        self.builder.branch(cond_block)

        self.builder.position_at_end(after_block)
        return None


def lower(program):
    return LLVMCodeGen().lower(program)
