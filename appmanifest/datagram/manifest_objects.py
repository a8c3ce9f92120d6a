#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    File name: manifest_objects.py
    Author: Alex Biddle

    Description:
        Immutable data objects built from decrypted manifests: the
        ApplicationSummary (id, name, version, and the session secret that
        keys the packages request) and the Package entries of a packages
        manifest. A new fetch produces new objects; existing ones are never
        mutated.
"""


import typing
from dataclasses import dataclass, field
from types import MappingProxyType
from appmanifest.handlers.error_handler import ApplicationManagerError, ApplicationCodes, ParseError
import appmanifest.constants as CONSTANTS
import appmanifest.handlers.sanitization_validation as VALIDATION


####################################################################################################
# Application Summary
####################################################################################################

"""
    Version summary of one application as issued by the server.

    id       : Application identifier
    name     : Application name (sent back with the packages request)
    version  : Opaque version string, compared exactly
    secret   : Session secret keying the packages HMAC (never shown in repr)
"""
@dataclass(frozen=True)
class ApplicationSummary:

    id: str
    name: str
    version: str
    secret: str = field(repr=False)


    """
        Build an ApplicationSummary from a decrypted summary payload.

        @param data (dict): {"id", "name", "version", "secret"}, all strings.
        @return ApplicationSummary
        @ensures Raises ParseError for missing fields or non-string values.
    """
    @classmethod
    def from_dict(cls, data: dict) -> "ApplicationSummary":
        try:
            VALIDATION.validate_required_fields(data, CONSTANTS._SUMMARY_REQUIRED_FIELDS, ApplicationCodes.INVALID_SUMMARY, "summary")

            for name in ("id", "name", "version", "secret"):
                if not isinstance(data[name], str):
                    raise ParseError(ApplicationCodes.INVALID_SUMMARY, f"Summary field '{name}' must be a string", name)

            return cls(id=data["id"], name=data["name"], version=data["version"], secret=data["secret"])

        except ApplicationManagerError:
            raise
        except Exception:
            raise ParseError(ApplicationCodes.INVALID_SUMMARY, "Invalid application summary payload", "summary")


    def to_dict(self, include_secret: bool = False) -> dict:
        data = {"id": self.id, "name": self.name, "version": self.version}
        if include_secret:
            data["secret"] = self.secret
        return data



####################################################################################################
# Package
####################################################################################################

# JSON objects become read-only mappings and arrays become tuples, recursively
def _freeze(value: typing.Any) -> typing.Any:
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: typing.Any) -> typing.Any:
    if isinstance(value, MappingProxyType):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value



"""
    One entry of the "packages" array. The fields are owned by the installer
    that consumes them; this client only carries them through read-only.
    Nested objects are frozen to read-only mappings and arrays to tuples, so
    no cached entry can be changed through a returned package.
"""
@dataclass(frozen=True, eq=False)
class Package:

    fields: typing.Mapping[str, typing.Any]


    @classmethod
    def from_dict(cls, data: typing.Any) -> "Package":
        if not isinstance(data, dict):
            raise ParseError(ApplicationCodes.INVALID_PACKAGE, "Package entry must be a JSON object", "packages")

        return cls(fields=_freeze(data))


    def get(self, key: str, default: typing.Any = None) -> typing.Any:
        return self.fields.get(key, default)

    @property
    def name(self) -> typing.Optional[str]:
        return self.fields.get("name")

    @property
    def version(self) -> typing.Optional[str]:
        return self.fields.get("version")

    """
        Return a fresh, mutable deep copy of the fields (dicts and lists).
    """
    def to_dict(self) -> dict:
        return _thaw(self.fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Package({self.to_dict()!r})"
