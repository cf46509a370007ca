# LogiMS/docker/gunicorn.conf.py
# ─────────────────────────────────────────────────────────────────────────────
# Назначение: конфигурация gunicorn для дашборда LogiMS
# ─────────────────────────────────────────────────────────────────────────────

import multiprocessing  # модуль для определения числа CPU
import os  # переменные окружения

wsgi_app = "LogiMS.wsgi:application"  # точка входа Django
bind = os.getenv("GUNICORN_BIND", "unix:/run/gunicorn/gunicorn.sock")  # по умолчанию unix-сокет для nginx
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))  # число воркеров
# воркер ждёт бэкенд (BACKEND_TIMEOUT и повторы), таймаут должен быть заметно больше
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))
accesslog = "-"  # лог запросов в stdout (перехватит supervisor)
errorlog = "-"   # лог ошибок в stdout
loglevel = os.getenv("LOG_LEVEL", "info").lower()  # тот же уровень, что у логгеров Django
worker_class = "sync"  # обычный sync-воркер: запросы к бэкенду блокирующие
