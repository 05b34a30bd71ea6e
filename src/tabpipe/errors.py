'''
Error taxonomy.

Every error raised by `tabpipe` derives from `TabPipeError` and from the
closest builtin, so callers can catch either. Missing or non-finite values
are data, never errors: only bad pipeline construction raises.

'''


class TabPipeError(Exception):
    ...


class FormatError(TabPipeError, ValueError):
    '''File can not be parsed or written as the declared format.'''


class SchemaInferenceError(TabPipeError, ValueError):
    '''Column names or types of a loaded file can not be determined.'''


class UnknownColumnError(TabPipeError, KeyError):
    '''A referenced column is not part of the table.'''

    def __init__(self, name: str, available: tuple[str, ...] = ()) -> None:
        self.name = name
        self.available = available
        msg = f'Unknown column {name!r}'
        if available:
            msg += f', table has: {", ".join(available)}'

        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class MissingKeyColumnError(UnknownColumnError):
    '''A declared join key is absent from one side of the join.'''


class DuplicateNameError(TabPipeError, ValueError):
    ...


class ColumnRangeError(TabPipeError, ValueError):
    '''Start of a column range is positioned after its end.'''


class NoCommonKeyError(TabPipeError, ValueError):
    ...


class InsufficientDomainError(TabPipeError, ValueError):
    '''Sampling without replacement asked for more values than exist.'''


class UnsupportedTypeError(TabPipeError, TypeError):
    ...


class SpecError(TabPipeError, ValueError):
    '''A pipeline definition or text expression failed validation.'''
