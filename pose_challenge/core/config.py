import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
load_dotenv(os.path.join(BASE_DIR, '.env'))


class Settings(BaseSettings):
    PROJECT_NAME: str = os.getenv('PROJECT_NAME', 'POSE CHALLENGE')
    LOGGING_CONFIG_FILE: str = os.path.join(BASE_DIR, 'logging.ini')

    # MediaPipe / Pose Detection settings
    POSE_MODEL_PATH: str = os.getenv(
        'POSE_MODEL_PATH',
        os.path.join(BASE_DIR, 'models', 'pose_landmarker_lite.task')
    )
    MIN_POSE_DETECTION_CONFIDENCE: float = float(os.getenv('MIN_POSE_DETECTION_CONFIDENCE', '0.5'))
    REFERENCE_IMAGE_DIR: str = os.getenv(
        'REFERENCE_IMAGE_DIR',
        os.path.join(BASE_DIR, 'static', 'poses')
    )
    SESSION_LOG_DIR: str = os.getenv(
        'SESSION_LOG_DIR',
        os.path.join(BASE_DIR, 'data', 'logs')
    )
    CAMERA_INDEX: int = int(os.getenv('CAMERA_INDEX', '0'))

    # Challenge tuning
    MATCH_THRESHOLD: float = float(os.getenv('MATCH_THRESHOLD', '0.8'))
    MAX_ANGLE_TOLERANCE: float = float(os.getenv('MAX_ANGLE_TOLERANCE', '45'))  # degrees
    TICK_INTERVAL_SEC: float = float(os.getenv('TICK_INTERVAL_SEC', '0.1'))
    DEFAULT_TARGET_TIME: int = int(os.getenv('DEFAULT_TARGET_TIME', '5'))  # seconds
    LEVEL_ESCALATION_FACTOR: float = float(os.getenv('LEVEL_ESCALATION_FACTOR', '1.2'))


settings = Settings()
