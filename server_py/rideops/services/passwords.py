import secrets

# Без похожих символов: нет l, I, O, o, 0, 1
LETTERS = "abcdefghijkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ"
DIGITS = "23456789"
SYMBOLS = "!@#$%&*?"

MIN_LENGTH = 8
MAX_LENGTH = 10


def generate_password() -> str:
    """Временный пароль, который легко продиктовать и набрать.

    8-10 символов: буквы, одна цифра и один спецсимвол рядом, в начале или
    в конце строки.
    """
    length = MIN_LENGTH + secrets.randbelow(MAX_LENGTH - MIN_LENGTH + 1)
    letters = "".join(secrets.choice(LETTERS) for _ in range(length - 2))
    tail = secrets.choice(DIGITS) + secrets.choice(SYMBOLS)
    if secrets.randbelow(2):
        return tail + letters
    return letters + tail
