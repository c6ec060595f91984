from datetime import date


def get_today() -> date:
    return date.today()


def first_of_month(today: date, months_back: int = 0) -> date:
    index = today.year * 12 + (today.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)
