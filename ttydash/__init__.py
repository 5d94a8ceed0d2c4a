"""ttydash — термінальний дашборд live bar-charts з потоку stdin.

Рядки stdin → числа (за units або колонками) → Series → сітка графіків.

Запуск: some_command | python -m ttydash [-u ms] [-l auto]
"""

__version__ = "0.2.1"
