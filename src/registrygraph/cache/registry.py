from __future__ import annotations

import difflib
import importlib
import re
from functools import lru_cache
from typing import Dict, Optional, Type

from .base import ResultCachePlugin
from .in_memory_ttl import ResultCache
from .null import NullResultCache

_CAMEL_1 = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_2 = re.compile(r"([a-z0-9])([A-Z])")

_BUILTIN_CACHES: tuple[Type[ResultCachePlugin], ...] = (ResultCache, NullResultCache)


@lru_cache(maxsize=1024)
def _camel_to_snake(name: str) -> str:
    s1 = _CAMEL_1.sub(r"\1_\2", name)
    s2 = _CAMEL_2.sub(r"\1_\2", s1)
    return s2.lower()


def _default_alias_for(cls: Type[ResultCachePlugin]) -> str:
    name = cls.__name__
    for suffix in ("CachePlugin", "Cache"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    return _camel_to_snake(name)


def _normalize(alias: str) -> str:
    return alias.strip().lower().replace("-", "_")


@lru_cache(maxsize=4)
def discover_result_caches() -> Dict[str, Type[ResultCachePlugin]]:
    """Brief: Map normalized aliases to the built-in result cache classes.

    Inputs:
      - None.

    Outputs:
      - Dict[str, Type[ResultCachePlugin]] mapping aliases to classes.
    """

    registry: Dict[str, Type[ResultCachePlugin]] = {}
    for cls in _BUILTIN_CACHES:
        claimed = set(_normalize(a) for a in (getattr(cls, "aliases", ()) or ()))
        claimed.add(_normalize(_default_alias_for(cls)))
        for alias in claimed:
            if alias in registry and registry[alias] is not cls:
                other = registry[alias]
                raise ValueError(
                    f"Duplicate result cache alias '{alias}' claimed by {cls.__name__} "
                    f"and {other.__name__}"
                )
            registry[alias] = cls
    return registry


def get_result_cache_class(identifier: str) -> Type[ResultCachePlugin]:
    """Brief: Resolve identifier to a result cache class.

    Inputs:
      - identifier: Dotted import path or alias.

    Outputs:
      - ResultCachePlugin subclass.
    """

    ident = str(identifier).strip()
    if "." in ident:
        modname, _, classname = ident.rpartition(".")
        if not modname or not classname:
            raise ValueError(f"Invalid result cache path '{identifier}'")
        module = importlib.import_module(modname)
        cls = getattr(module, classname)
        if not isinstance(cls, type) or not issubclass(cls, ResultCachePlugin):
            raise TypeError(f"{identifier} is not a ResultCachePlugin subclass")
        return cls

    reg = discover_result_caches()
    key = _normalize(ident)
    try:
        return reg[key]
    except KeyError:
        suggestions = difflib.get_close_matches(key, list(reg.keys()), n=3)
        raise KeyError(
            f"Unknown result cache alias '{identifier}'. "
            f"Known aliases: {', '.join(sorted(reg.keys()))}. "
            f"Suggestions: {suggestions}"
        )


def load_result_cache(cfg: Optional[object]) -> ResultCachePlugin:
    """Brief: Build the configured result cache.

    Inputs:
      - cfg: Cache config. Supported forms:
        - None: Use the default in-memory TTL cache.
        - str: Alias or dotted import path.
        - dict: {"module": <str>, "config": <dict>}.

    Outputs:
      - ResultCachePlugin instance.

    Example:
      cache:
        module: memory
        config:
          ttl_seconds: 1800
    """

    if cfg is None:
        return ResultCache()

    if isinstance(cfg, str):
        cls = get_result_cache_class(cfg)
        return cls()

    if isinstance(cfg, dict):
        # An explicit null module disables caching; omitting it keeps the default.
        if "module" in cfg and cfg.get("module") is None:
            module = "none"
        else:
            module = cfg.get("module")
            if isinstance(module, str):
                module = module.strip() or None
            if module is None:
                module = "in_memory_ttl"

        subcfg = cfg.get("config")
        if not isinstance(subcfg, dict):
            subcfg = {}

        cls = get_result_cache_class(str(module))
        return cls(**dict(subcfg))

    raise TypeError("cache config must be a mapping, string, or null")
