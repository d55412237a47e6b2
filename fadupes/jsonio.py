# fadupes/jsonio.py
"""--json output mode: exactly one JSON document on stdout, logs on stderr."""

from __future__ import annotations
import json, logging, sys
from typing import Any, Dict, Optional

def enable_json_logging(verbose: bool = False):
    """Route logs to stderr so stdout carries only the JSON document."""
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)
    logging.basicConfig(stream=sys.stderr, level=logging.DEBUG if verbose else logging.ERROR,
                        format="%(asctime)s [%(levelname)s] %(message)s")

def _emit(payload: Dict[str, Any]):
    print(json.dumps(payload, ensure_ascii=False), file=sys.stdout)
    sys.stdout.flush()

def success(summary: Dict[str, Any], code: int = 0) -> int:
    _emit({"result": "success", "command": "scan", "data": summary})
    return code

def error(message: str, kind: str, debug: Optional[Dict[str, Any]] = None, code: int = 1) -> int:
    payload = {"result": "error", "command": "scan", "kind": kind, "error": message}
    if debug:
        payload["debug"] = debug
    _emit(payload)
    return code
