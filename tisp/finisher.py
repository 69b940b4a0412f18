import ctypes
import logging
import subprocess

import llvmlite.binding as llvm

from .compyler import verify_module
from .errors import NativeBuildError

logger = logging.getLogger(__name__)


def _target_machine(**options):
    llvm.initialize_native_target()
    llvm.initialize_native_asmprinter()
    target = llvm.Target.from_default_triple()
    return target.create_target_machine(**options)


def make_output(codegen_module, path):
    logger.info(f'Saving LLVM IR to {path}')
    with open(path, 'w') as f:
        f.write(str(codegen_module))


def convert_ir_to_obj(codegen_module, path):
    logger.info(f'Converting LLVM IR to an object file: {path}')
    llvm_module = verify_module(codegen_module)
    # the system linker builds PIE executables by default
    target_machine = _target_machine(reloc='pic', codemodel='default')
    obj = target_machine.emit_object(llvm_module)
    with open(path, 'wb') as f:
        f.write(obj)


def convert_obj_to_exe(obj_path, exe_path, linker='cc'):
    logger.info(f'Linking {obj_path} into {exe_path}')
    try:
        subprocess.run([linker, obj_path, '-o', exe_path], check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise NativeBuildError(f'Could not link {obj_path} with {linker}: {e}') from e


def run_jit(codegen_module):
    """Compile the module in-process and run its ``main``.

    ``printf`` is bound to the C library of the running interpreter, and C
    stdio is flushed before returning so the program's output is not left in
    a buffer behind Python's own output.
    """
    logger.info('Running program with the LLVM JIT')
    target_machine = _target_machine()
    llvm_module = verify_module(codegen_module)

    libc = ctypes.CDLL(None)
    llvm.add_symbol('printf', ctypes.cast(libc.printf, ctypes.c_void_p).value)

    engine = llvm.create_mcjit_compiler(llvm_module, target_machine)
    engine.finalize_object()
    engine.run_static_constructors()

    main = ctypes.CFUNCTYPE(ctypes.c_int32)(engine.get_function_address('main'))
    status = main()
    libc.fflush(None)
    return status
