import logging
import sys

def setup_logging(name="primary_signals", level=logging.INFO):
    logger = logging.getLogger(name)
    logger.setLevel(level)
    
    # Importing modules more than once must not stack handlers
    if logger.handlers:
        return logger
    
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    
    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(formatter)
    logger.addHandler(ch)
    
    return logger

logger = setup_logging()
