from __future__ import annotations

import json
import logging
import random
import re
from pathlib import Path
from threading import RLock
from typing import Any


_LOG = logging.getLogger(__name__)
_DEFAULT_ROOT = Path(__file__).resolve().parent.parent / "data" / "libs"
_DEFAULT_LANG = "en"
_VAR_RE = re.compile(r"\{([a-zA-Z0-9_]+)\}")

_CACHE_LOCK = RLock()
_CACHE: dict[str, Any] = {
    "loaded": False,
    "root": str(_DEFAULT_ROOT),
    "langs": {},
}


def _lang_from_filename(path: Path) -> str:
    # messages.en.json -> en, messages.json -> default
    parts = path.name.split(".")
    if len(parts) >= 3 and len(parts[-2]) == 2:
        return str(parts[-2]).strip().casefold() or _DEFAULT_LANG
    return _DEFAULT_LANG


def _normalize_phrase_list(raw: object) -> list[str]:
    if isinstance(raw, str):
        txt = raw.strip("\n")
        return [txt] if txt.strip() else []
    if not isinstance(raw, list):
        return []
    return [row.strip("\n") for row in raw if isinstance(row, str) and row.strip()]


def _load_json(path: Path, store: dict[str, dict[str, list[str]]]) -> int:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _LOG.warning("text_library: invalid JSON %s (%s)", path, exc)
        return 0

    if not isinstance(payload, dict):
        _LOG.warning("text_library: unexpected non-object content in %s", path)
        return 0

    meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
    entries = payload.get("entries") if isinstance(payload.get("entries"), dict) else {}
    lang = str(meta.get("lang") or _lang_from_filename(path)).strip().casefold() or _DEFAULT_LANG
    keys_map = store.setdefault(lang, {})

    loaded = 0
    for raw_key, raw_value in entries.items():
        key = str(raw_key or "").strip()
        phrases = _normalize_phrase_list(raw_value)
        if not key or not phrases:
            continue
        merged = list(keys_map.get(key, []))
        for phrase in phrases:
            if phrase not in merged:
                merged.append(phrase)
        keys_map[key] = merged
        loaded += 1
    return loaded


def load_all_libs(root: str | None = None) -> dict[str, Any]:
    root_path = Path(str(root or _DEFAULT_ROOT)).resolve()
    with _CACHE_LOCK:
        store: dict[str, dict[str, list[str]]] = {}
        if root_path.is_dir():
            for path in sorted(root_path.rglob("*.json")):
                _load_json(path, store)
        else:
            _LOG.warning("text_library: missing directory %s", root_path)

        _CACHE["loaded"] = True
        _CACHE["root"] = str(root_path)
        _CACHE["langs"] = store
        key_count = sum(len(keys) for keys in store.values())
        return {"root": str(root_path), "langs": len(store), "keys": key_count}


def reload_libs(root: str | None = None) -> dict[str, Any]:
    with _CACHE_LOCK:
        _CACHE["loaded"] = False
        _CACHE["langs"] = {}
    return load_all_libs(root=root)


def _ensure_loaded() -> None:
    with _CACHE_LOCK:
        if bool(_CACHE.get("loaded", False)):
            return
    load_all_libs(root=str(_CACHE.get("root") or _DEFAULT_ROOT))


def get_phrases(key: str, lang: str = _DEFAULT_LANG) -> list[str]:
    _ensure_loaded()
    clean_key = str(key or "").strip()
    if not clean_key:
        return []

    clean_lang = str(lang or _DEFAULT_LANG).strip().casefold() or _DEFAULT_LANG
    with _CACHE_LOCK:
        langs = _CACHE.get("langs") if isinstance(_CACHE.get("langs"), dict) else {}
        keys_map = langs.get(clean_lang) or langs.get(_DEFAULT_LANG) or {}
        return list(keys_map.get(clean_key, []))


def format_vars(text: str, **vars: object) -> str:
    raw = str(text or "")

    def _replace(match: re.Match[str]) -> str:
        key = str(match.group(1) or "").strip()
        if key in vars:
            value = vars.get(key)
            return str(value if value is not None else "")
        return match.group(0)

    return _VAR_RE.sub(_replace, raw)


def pick(key: str, fallback: str | None = None, *, lang: str = _DEFAULT_LANG, **vars: object) -> str:
    phrases = get_phrases(key=key, lang=lang)
    if phrases:
        return format_vars(random.choice(phrases), **vars)

    if isinstance(fallback, str) and fallback.strip():
        return format_vars(fallback.strip(), **vars)

    _LOG.warning("text_library: missing key '%s' (lang=%s)", key, lang)
    return format_vars(str(key or ""), **vars)


def list_keys(*, lang: str = _DEFAULT_LANG) -> set[str]:
    _ensure_loaded()
    clean_lang = str(lang or _DEFAULT_LANG).strip().casefold() or _DEFAULT_LANG
    with _CACHE_LOCK:
        langs = _CACHE.get("langs") if isinstance(_CACHE.get("langs"), dict) else {}
        return set((langs.get(clean_lang) or {}).keys())
