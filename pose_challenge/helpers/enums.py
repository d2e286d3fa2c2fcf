import enum


class HoldDuration(enum.IntEnum):
    SHORT = 3
    DEFAULT = 5
    MEDIUM = 10
    LONG = 15
    EXTENDED = 30

    @classmethod
    def values(cls):
        return [member.value for member in cls]


class EventType(enum.Enum):
    POSE_COMPLETED = 'POSE_COMPLETED'
    LEVEL_COMPLETED = 'LEVEL_COMPLETED'
