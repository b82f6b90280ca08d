from enum import IntFlag


class Direction(IntFlag):
    PREFIX = 1
    POSTFIX = 2
    BOTH = 3
