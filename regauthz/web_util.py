import http.client
from typing import Any, Dict, Optional

import tornado.web

from regauthz import json


def echo_json_response(
    handler: Any, code: int, status: Optional[str] = None, results: Optional[Any] = None
) -> bool:
    """Takes a json package and returns it to the user w/ full HTTP headers"""
    if handler is None or code is None:
        return False
    if status is None:
        status = http.client.responses[code]
    if results is None:
        results = {}

    json_res: Dict[str, Any] = {"code": code, "status": status, "results": results}
    json_response_bytes = json.dumps(json_res).encode("utf-8")

    if isinstance(handler, tornado.web.RequestHandler):
        handler.set_status(code)
        handler.set_header("Content-Type", "application/json")
        handler.write(json_response_bytes)
        handler.finish()
        return True

    return False
