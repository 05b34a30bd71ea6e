from pathlib import Path
from typing import Any, Self, Type

import msgspec


def ext_enc_hook(obj: Any) -> Any:
    '''
    Extended encoder hook for msgspec so structs holding paths can be turned
    into builtins or json.

    '''
    match obj:
        case Path():
            return str(obj)

    raise NotImplementedError(f'Objects of type {type(obj)} are not supported')


def ext_dec_hook(type: Type, obj: Any) -> Any:
    '''
    Given a type in a struct definition, convert ``obj`` (composed of natively
    supported objects) into an object of type ``type``.

    `TypeError` / `ValueError` raised here are reported by msgspec as a
    `ValidationError` with the path to the offending field.

    '''
    if type is Path:
        return Path(obj)

    raise NotImplementedError(f'Objects of type {type} are not supported')


class _Struct:
    @classmethod
    def from_other(cls, other: Self, **kwargs) -> Self:
        params = other.to_dict()
        params.update(kwargs)
        return cls.convert(params)

    @classmethod
    def from_json(cls, s: str | bytes) -> Self:
        return msgspec.json.decode(s, type=cls, dec_hook=ext_dec_hook)

    @classmethod
    def from_toml(cls, s: str | bytes) -> Self:
        return msgspec.toml.decode(s, type=cls, dec_hook=ext_dec_hook)

    @classmethod
    def convert(cls, obj: Any) -> Self:
        return msgspec.convert(obj, type=cls, dec_hook=ext_dec_hook)

    def to_dict(self) -> dict:
        return msgspec.to_builtins(self, enc_hook=ext_enc_hook)

    def to_json(self) -> str:
        return msgspec.json.encode(self, enc_hook=ext_enc_hook).decode()


class FrozenStruct(msgspec.Struct, _Struct, frozen=True): ...
