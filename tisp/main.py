"""tispc: compile a Tisp program to LLVM IR.

Usage: tispc (<input.tisp> | -i <input.tisp>) [-o output.ll] [--emit-llvm] [--debug] [--native exe] [--run]
"""

import argparse
import logging
import os
import sys

from .compyler import LLVMCodeGen
from .errors import TispError
from .finisher import convert_ir_to_obj, convert_obj_to_exe, make_output, run_jit
from .lexer import tokenize
from .parser import Parser
from .reader import fetch_code


def build_argparser():
    argparser = argparse.ArgumentParser(prog='tispc', description='Tisp compiler')
    argparser.add_argument('input', nargs='?', help='Tisp file to compile')
    argparser.add_argument('-i', '--input', dest='input_flag', metavar='INPUT',
                           help='Tisp file to compile (same as the positional argument)')
    argparser.add_argument('-o', '--output', help='Output .ll file (default: <input>.ll)')
    argparser.add_argument('-e', '--emit-llvm', action='store_true',
                           help='Print the LLVM IR to the console')
    argparser.add_argument('-d', '--debug', action='store_true',
                           help='Print the token stream and expression tree')
    argparser.add_argument('--native', metavar='EXE',
                           help='Also build a native executable with the system C compiler')
    argparser.add_argument('--run', action='store_true',
                           help='Run the compiled program with the LLVM JIT')
    argparser.add_argument('-q', '--quiet', action='store_true',
                           help='Only log warnings and errors')
    return argparser


def compile_file(args):
    code = fetch_code(args.input)
    tokens = tokenize(code)
    program = Parser(tokens).parse()

    if args.debug:
        print('Token stream:')
        for token in tokens:
            print(f'  {token}')
        print('Expression tree:')
        for node in program:
            print(f'  {node}')

    module = LLVMCodeGen(name=os.path.basename(args.input)).lower(program)

    if args.emit_llvm:
        print(module)

    output = args.output or os.path.splitext(args.input)[0] + '.ll'
    make_output(module, output)

    if args.native:
        obj_path = os.path.splitext(args.native)[0] + '.o'
        convert_ir_to_obj(module, obj_path)
        convert_obj_to_exe(obj_path, args.native)

    if args.run:
        return run_jit(module)
    return 0


def parse_args(argv=None):
    argparser = build_argparser()
    args = argparser.parse_args(argv)
    if args.input and args.input_flag:
        argparser.error('give the input file either positionally or with -i, not both')
    args.input = args.input or args.input_flag
    if not args.input:
        argparser.error('an input .tisp file is required')
    return args


def main(argv=None):
    args = parse_args(argv)

    level = logging.INFO
    if args.quiet:
        level = logging.WARNING
    elif args.debug:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(message)s')

    try:
        return compile_file(args)
    except TispError as e:
        print(f'error: {e}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
