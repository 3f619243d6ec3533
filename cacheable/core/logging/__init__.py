from .logger import (
    clear_unit_id,
    get_logger,
    get_unit_id,
    log_stage,
    reset_unit_id,
    set_unit_id,
    setup_logging,
)

__all__ = [
    "clear_unit_id",
    "get_logger",
    "get_unit_id",
    "log_stage",
    "reset_unit_id",
    "set_unit_id",
    "setup_logging",
]
