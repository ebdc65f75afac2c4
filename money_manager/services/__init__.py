# money_manager/services/__init__.py
