"""
Component logging for the durable queue.

Provides a factory that binds the five level functions used across the
package to a stdlib logger named after the component, so every module
logs with the same prefix without repeating the setup.

Usage:
    from shared.log import create_logger
    log_trace, log_debug, log_info, log_warn, log_error = create_logger("Recovery")
    log_info("Promoted staging file")  # -> [DurableQueue Recovery] Promoted staging file
"""

import logging

# Below DEBUG; used for per-item messages
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

ROOT_LOGGER_NAME = "durable_queue"


def get_component_logger(component: str = "") -> logging.Logger:
    """Return the stdlib logger backing a component."""
    if not component:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component.lower()}")


def create_logger(component: str = ""):
    """Create log functions for a component.

    Args:
        component: Component name suffix. If provided, prefix becomes
                   "[DurableQueue {component}]", otherwise "[DurableQueue]".

    Returns:
        Tuple of (log_trace, log_debug, log_info, log_warn, log_error) functions.
    """
    prefix = f"[DurableQueue {component}]" if component else "[DurableQueue]"
    logger = get_component_logger(component)

    def log_trace(msg): logger.log(TRACE, f"{prefix} {msg}")
    def log_debug(msg): logger.debug(f"{prefix} {msg}")
    def log_info(msg): logger.info(f"{prefix} {msg}")
    def log_warn(msg): logger.warning(f"{prefix} {msg}")
    def log_error(msg): logger.error(f"{prefix} {msg}")

    return log_trace, log_debug, log_info, log_warn, log_error
