# money_manager/routes/__init__.py
