"""Tests for the tispc command line."""

import pytest

from tisp.main import build_argparser, main


@pytest.fixture
def source_file(tmp_path):
    def write(code, name='prog.tisp'):
        path = tmp_path / name
        path.write_text(code)
        return path
    return write


class TestArguments:
    def test_defaults(self):
        args = build_argparser().parse_args(['prog.tisp'])
        assert args.input == 'prog.tisp'
        assert args.output is None
        assert not args.emit_llvm
        assert not args.debug
        assert not args.run

    def test_short_flags(self):
        args = build_argparser().parse_args(['-e', '-d', '-o', 'out.ll', 'prog.tisp'])
        assert args.emit_llvm
        assert args.debug
        assert args.output == 'out.ll'


class TestCompile:
    def test_writes_ir_next_to_input(self, source_file):
        path = source_file('(print (+ 1 2))')
        assert main([str(path)]) == 0
        output = path.with_suffix('.ll')
        assert 'define i32 @"main"()' in output.read_text()

    def test_explicit_output(self, source_file, tmp_path):
        path = source_file('(print 1)')
        out = tmp_path / 'custom.ll'
        assert main([str(path), '-o', str(out)]) == 0
        assert out.exists()

    def test_emit_llvm(self, source_file, capsys):
        path = source_file('(print "hi")')
        assert main([str(path), '--emit-llvm', '--quiet']) == 0
        out = capsys.readouterr().out
        assert 'declare i32 @"printf"' in out

    def test_debug_prints_tokens_and_tree(self, source_file, capsys):
        path = source_file('(print 1)')
        assert main([str(path), '--debug']) == 0
        out = capsys.readouterr().out
        assert 'Token stream:' in out
        assert "Token(kind='PRINT', value='print')" in out
        assert 'Expression tree:' in out
        assert 'Call(head=Builtin' in out

    def test_run(self, source_file, capfd):
        path = source_file('(let i 0) (while (< i 2) (let i (+ i 1))) (print i)')
        assert main([str(path), '--run', '--quiet']) == 0
        assert capfd.readouterr().out == '2.000000\n'


class TestErrors:
    def test_wrong_extension(self, source_file, capsys):
        path = source_file('(print 1)', name='prog.txt')
        assert main([str(path)]) == 1
        assert 'error:' in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / 'missing.tisp')]) == 1
        assert 'Missing source file' in capsys.readouterr().err

    def test_unbalanced_writes_nothing(self, source_file, capsys):
        path = source_file('(print 1')
        assert main([str(path)]) == 1
        assert not path.with_suffix('.ll').exists()
        assert 'unclosed' in capsys.readouterr().err

    def test_undefined_variable(self, source_file, capsys):
        path = source_file('(print y)')
        assert main([str(path)]) == 1
        assert 'Undefined variable: y' in capsys.readouterr().err
        assert not path.with_suffix('.ll').exists()

    def test_lexical_error(self, source_file, capsys):
        path = source_file('(print @)')
        assert main([str(path)]) == 1
        assert "Unexpected character '@'" in capsys.readouterr().err

    def test_deeply_nested_program(self, source_file, capsys):
        depth = 2000
        path = source_file('(print ' + '(+ 1 ' * depth + '1' + ')' * (depth + 1))
        assert main([str(path)]) == 1
        assert 'error: expression nested too deeply' in capsys.readouterr().err
        assert not path.with_suffix('.ll').exists()


class TestInputFlag:
    def test_input_flag(self, source_file):
        path = source_file('(print 1)')
        assert main(['-i', str(path), '--quiet']) == 0
        assert path.with_suffix('.ll').exists()

    def test_long_input_flag(self, source_file):
        path = source_file('(print 1)')
        assert main(['--input', str(path), '--quiet']) == 0
        assert path.with_suffix('.ll').exists()

    def test_missing_input(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2

    def test_both_inputs(self, source_file):
        path = source_file('(print 1)')
        with pytest.raises(SystemExit) as exc:
            main([str(path), '-i', str(path)])
        assert exc.value.code == 2
