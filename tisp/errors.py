class TispError(RuntimeError):
    """Base class for every error that aborts a compilation."""


class SourceError(TispError):
    pass


class LexicalError(TispError):
    def __init__(self, char, line, col):
        self.char = char
        self.line = line
        self.col = col
        super().__init__(f'Unexpected character {char!r} at {line}:{col}')


class MalformedExpression(TispError):
    pass


class UnknownFunction(TispError):
    def __init__(self, name):
        self.name = name
        super().__init__(f'Unknown function: {name}')


class InvalidBinding(TispError):
    pass


class UndefinedVariable(TispError):
    def __init__(self, name):
        self.name = name
        super().__init__(f'Undefined variable: {name}')


class InvalidCondition(TispError):
    pass


class InvalidOperand(TispError):
    pass


class VerificationFailure(TispError):
    pass


class NativeBuildError(TispError):
    pass
