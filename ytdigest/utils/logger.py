import sys
import logging

from ytdigest.config import config

logging_str = "[%(asctime)s] {%(pathname)s:%(lineno)d} %(levelname)s - %(message)s"
config.LOG_DIR.mkdir(parents=True, exist_ok=True)
log_path = config.LOG_DIR / "ytdigest.log"

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format=logging_str,
    handlers=[
        logging.FileHandler(log_path, encoding="utf-8"),
        logging.StreamHandler(sys.stdout)
    ]
)
# Quiet third-party loggers
for noisy in ("urllib3", "multipart"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logging = logging.getLogger('ytdigest')
