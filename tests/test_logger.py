"""Tests for the service logger setup."""

from shop_service.logger import setup_service_logger
from shop_service.order_engine import logger as engine_logger


def test_service_name_is_on_every_record(tmp_path):
    """Records logged through the module-level logger carry the service name."""
    log_file = tmp_path / "service.log"
    log = setup_service_logger("orders-test", log_level="DEBUG", log_file=str(log_file))
    try:
        log.info("engine ready")
        engine_logger.warning("stock low")
    finally:
        setup_service_logger("shop-service")

    lines = log_file.read_text().splitlines()
    assert len(lines) == 2
    assert all("| orders-test |" in line for line in lines)
    assert lines[0].endswith("engine ready")
    assert lines[1].endswith("stock low")
