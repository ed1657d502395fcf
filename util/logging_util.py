import logging
import sys

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    Sets up a logger with consistent formatting.
    
    Args:
        name: Name of the logger (typically __name__ from the calling module)
        level: Logging level (default: INFO)
    
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    
    # Avoid adding handlers multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        
        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
        console_handler.setFormatter(formatter)
        
        logger.addHandler(console_handler)
    
    return logger

def log_turn_received(logger: logging.Logger, intent: str, user_id: str,
                      parameters: dict):
    """
    Logs an inbound conversational turn.
    
    Args:
        logger: Logger instance to use
        intent: Resolved intent name
        user_id: Platform user id (may be empty for anonymous users)
        parameters: Extracted intent parameters
    """
    logger.info(f"📥 Turn Received - Intent: {intent}, User: {user_id or '<anonymous>'}")
    logger.debug(f"  Params: {parameters}")

def log_turn_response(logger: logging.Logger, intent: str, speech: str,
                      expect_user_response: bool):
    """
    Logs the response returned for a turn.
    
    Args:
        logger: Logger instance to use
        intent: Intent that produced the response
        speech: Spoken text
        expect_user_response: Whether the conversation stays open
    """
    state = "open" if expect_user_response else "closed"
    logger.info(f"📤 Turn Response - Intent: {intent} ({state})")
    logger.info(f"  Speech: {speech[:200]}{'...' if len(speech) > 200 else ''}")

def log_push_delivery(logger: logging.Logger, user_id: str, status_code: int,
                      reason: str, body: str, duration_ms: float = None):
    """
    Logs the outcome of a single push delivery call.
    
    Args:
        logger: Logger instance to use
        user_id: Target user id
        status_code: HTTP status code returned by the push endpoint
        reason: HTTP reason phrase
        body: Response body
        duration_ms: Optional duration of the call in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.info(f"Push Delivery{duration_str} - User: {user_id} - {status_code}: {reason}")
    logger.info(f"  Body: {body[:200]}{'...' if len(body) > 200 else ''}")
