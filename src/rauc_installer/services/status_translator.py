# -*- coding: utf-8 -*-

"""
Translates RAUC installer events into status messages and results of an
InstallContext.

Both handlers run on the worker's private loop. Neither of them calls back
into the caller while holding the context lock: ``notify_event`` is scheduled
on the loop instead.

See https://github.com/rauc/rauc/blob/master/src/rauc-installer.xml for the
properties and signals consumed here.
"""

import logging
from typing import Any, Dict, List, Optional

from rauc_installer.models.install_context import InstallContext
from rauc_installer.models.install_result import InstallResult

logger = logging.getLogger(__name__)


def format_progress(percentage: int, message: str) -> str:
    return f"{int(percentage):3d}% {message}"


def translate_properties(changed: Dict[str, Any]) -> Optional[str]:
    """
    Returns the status message for one property change, if any.

    Only the first matching property is used: ``Operation``, then
    ``Progress``, then a non-empty ``LastError``.
    """
    if "Operation" in changed:
        return str(changed["Operation"])
    if "Progress" in changed:
        percentage, message, _depth = changed["Progress"]
        return format_progress(percentage, message)
    last_error = changed.get("LastError")
    if last_error:
        return f"LastError: {last_error}"
    return None


def on_installer_status(context: InstallContext, changed: Dict[str, Any], invalidated: List[str]):
    if invalidated:
        logger.error("O serviço D-Bus do RAUC desapareceu.")
        context.set_result(InstallResult.DISCONNECTED)
        context.mainloop.quit()
        return

    if context.notify_event is None:
        return

    message = translate_properties(changed)
    with context.status_lock:
        if message is not None:
            context.status_messages.append(message)
        has_messages = bool(context.status_messages)

    if has_messages:
        context.loop_context.call_soon_threadsafe(context.notify_event, context)


def on_installer_completed(context: InstallContext, result: int):
    logger.debug(f"RAUC sinalizou o fim da instalação com resultado {result}.")
    if not context.set_result(result):
        logger.warning(f"Resultado {result} ignorado, a instalação já havia terminado com {context.result}.")

    if result >= 0:
        context.mainloop.quit()
