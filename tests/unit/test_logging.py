import json
import logging

from docstore.core.config import Settings
from docstore.core.logging import configure_logging, get_logger


def test_module_level_logger_picks_up_later_configuration(tmp_path, caplog):
    # created before configure_logging, the way modules do at import time
    logger = get_logger("docstore.models.database")

    configure_logging(Settings(storage_root=tmp_path, log_level="INFO", log_format="json"))
    with caplog.at_level(logging.INFO, logger="docstore.models.database"):
        logger.info("record created", collection="notes", record_id=1)

    record = next(r for r in caplog.records if r.name == "docstore.models.database")
    payload = json.loads(record.getMessage())
    assert payload["event"] == "record created"
    assert payload["logger"] == "docstore.models.database"
    assert payload["collection"] == "notes"
    assert payload["level"] == "info"


def test_store_modules_import_with_loggers():
    from docstore.models import database, file, user

    assert database.logger is not None
    assert file.logger is not None
    assert user.logger is not None
