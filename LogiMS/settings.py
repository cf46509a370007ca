# LogiMS/LogiMS/settings.py
# ─────────────────────────────────────────────────────────────────────────────
# Путь и имя файла: LogiMS/LogiMS/settings.py
# Назначение: глобальные настройки проекта Django + параметры доступа к REST-бэкенду
# Принципы: всё, что зависит от окружения, читаем из .env; тулбар: только при DEBUG,
# своё состояние не храним: токен бэкенда живёт в подписанной cookie-сессии.
# ─────────────────────────────────────────────────────────────────────────────

from pathlib import Path  # стандартный модуль для работы с путями (Path-объект)
import os                 # модуль для чтения переменных окружения и работы с ОС
import socket             # модуль нужен для вычисления INTERNAL_IPS (Docker/WSL кейсы)
from dotenv import load_dotenv  # загрузка значений из .env
from django.core.exceptions import ImproperlyConfigured  # понятная ошибка конфигурации

# BASE_DIR: корень проекта (папка LogiMS). Используем для формирования других путей.
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Быстрая стартовая секция (важное для безопасности) ───────────────────────

# Подгружаем файл окружения .env, расположенный в корне проекта
load_dotenv(BASE_DIR / ".env")

# Окружение: development / production
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").strip().lower()

# Флаг режима разработки. В продакшене должен быть False.
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"

# Секретный ключ берём из переменной окружения KEY_DJ
SECRET_KEY = os.getenv("KEY_DJ", "")

# В продакшене без ключа не стартуем; в разработке и тестах: локальный ключ
if not SECRET_KEY:
    if ENVIRONMENT == "production":
        raise ImproperlyConfigured("SECRET_KEY не найден в .env! Установите KEY_DJ.")
    SECRET_KEY = "django-insecure-logims-dev-only"

# Список разрешённых хостов (через запятую)
ALLOWED_HOSTS: list[str] = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "").split(",") if h.strip()]

# ── REST-бэкенд ──────────────────────────────────────────────────────────────

# Базовый адрес API бэкенда (без /v1: версия входит в путь запроса)
BACKEND_API_URL = os.getenv("BACKEND_API_URL", "http://localhost:8000/api").rstrip("/")

# Таймаут HTTP-запросов к бэкенду (секунды) и число повторов на 502/503/504
BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "10"))
BACKEND_RETRIES = int(os.getenv("BACKEND_RETRIES", "2"))

# Размер страницы для всех списков (как в исходном UI: по 10 строк)
DEFAULT_PAGE_SIZE = 10

# ── Приложения проекта ───────────────────────────────────────────────────────

INSTALLED_APPS = [
    "django.contrib.auth",             # нужен DRF (AnonymousUser), пользователей в БД не храним
    "django.contrib.contenttypes",     # контент-тайпы (зависимость auth)
    "django.contrib.sessions",         # сессии (в них лежит токен бэкенда)
    "django.contrib.messages",         # сообщения (flash-сообщения)
    "django.contrib.staticfiles",      # работа со статикой
    "rest_framework",                  # DRF: JSON API для графиков и пагинатора
    "accounts",                        # вход/выход через токен бэкенда
    "drivers",                         # основное приложение: водители, документы, выгрузки
    # "debug_toolbar" подключим ниже условно, чтобы в проде не торчал
]

# Опциональный флажок для быстрой деактивации тулбара даже при DEBUG=True
ENABLE_DEBUG_TOOLBAR = os.getenv("ENABLE_DEBUG_TOOLBAR", "1") == "1"

# Подключим debug_toolbar только в режиме разработки и если не отключён переменной
if DEBUG and ENABLE_DEBUG_TOOLBAR:
    INSTALLED_APPS += ["debug_toolbar"]  # добавляем приложение тулбара

# ── Middleware ───────────────────────────────────────────────────────────────

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",        # базовая безопасность
    "django.contrib.sessions.middleware.SessionMiddleware", # поддержка сессий
    "django.middleware.common.CommonMiddleware",            # общие улучшения (ETag и пр.)
    "django.middleware.csrf.CsrfViewMiddleware",            # защита от CSRF
    "django.contrib.auth.middleware.AuthenticationMiddleware",  # request.user (всегда аноним)
    "django.contrib.messages.middleware.MessageMiddleware",     # флеш-сообщения
    "django.middleware.clickjacking.XFrameOptionsMiddleware",   # защита от clickjacking
]

# Если тулбар включён: вставляем его middleware сразу после SecurityMiddleware
if DEBUG and ENABLE_DEBUG_TOOLBAR:
    _dt_mw = "debug_toolbar.middleware.DebugToolbarMiddleware"  # название middleware тулбара
    sec_idx = MIDDLEWARE.index("django.middleware.security.SecurityMiddleware")
    if _dt_mw not in MIDDLEWARE:
        MIDDLEWARE.insert(sec_idx + 1, _dt_mw)  # вставляем на нужную позицию

# ── Сессии и вход ────────────────────────────────────────────────────────────

# Сессия целиком в подписанной cookie: на сервере ничего не храним
SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_AGE = 60 * 60 * 12  # 12 часов

# Ключ сессии, под которым лежит токен бэкенда
BACKEND_TOKEN_SESSION_KEY = "backend_token"

LOGIN_URL = "accounts:login"          # страница логина
LOGIN_REDIRECT_URL = "drivers:dashboard"  # куда отправлять после логина

# ── Урлы и WSGI ──────────────────────────────────────────────────────────────

ROOT_URLCONF = "LogiMS.urls"          # корневой файл с маршрутами

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",  # бэкенд движка шаблонов
        "DIRS": [BASE_DIR / "templates"],  # папка с шаблонами проекта
        "APP_DIRS": True,                  # включаем поиск шаблонов в приложениях
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",  # добавляет request в контекст
                "django.contrib.messages.context_processors.messages",  # для messages
                "accounts.context_processors.backend_session",  # признак входа для меню
            ],
        },
    },
]

WSGI_APPLICATION = "LogiMS.wsgi.application"  # точка входа WSGI-сервера

# ── База данных ──────────────────────────────────────────────────────────────
# Данные живут в бэкенде; SQLite нужна только служебным частям Django.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",    # движок БД
        "NAME": BASE_DIR / "db.sqlite3",           # путь до файла SQLite
    }
}

# ── Кэш короткоживущих ответов бэкенда ───────────────────────────────────────

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "logims-backend-queries",
        "TIMEOUT": 300,  # верхняя граница; реальные TTL задаются на каждый запрос
    }
}

# ── Локализация и часовой пояс ──────────────────────────────────────────────

LANGUAGE_CODE = "ru-ru"       # язык интерфейса
TIME_ZONE = "Europe/Moscow"   # часовой пояс проекта
USE_I18N = True               # поддержка интернационализации
USE_TZ = True                 # даты/время в UTC

# ── Статика ─────────────────────────────────────────────────────────────────

STATIC_URL = "static/"                 # URL-префикс для статики
STATICFILES_DIRS = [BASE_DIR / "static"]  # папка со статикой проекта

# ── Первичный ключ по умолчанию ─────────────────────────────────────────────

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"  # тип авто-поля id

# ── Загрузка файлов: всё, что больше 5 МБ, Django пишет во временный файл ───
FILE_UPLOAD_MAX_MEMORY_SIZE = 5 * 1024 * 1024

# ── DRF: базовые безопасные настройки ────────────────────────────────────────
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",  # JSON рендерер
        "rest_framework.renderers.BrowsableAPIRenderer",  # удобно при разработке
    ],
    # доступ к API определяет токен бэкенда в сессии (см. drivers.permissions)
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

# ── Логирование ─────────────────────────────────────────────────────────────

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "loggers": {
        "drivers": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "accounts": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "django.request": {"handlers": ["console"], "level": "WARNING"},
    },
}

# ── Django Debug Toolbar: INTERNAL_IPS и конфигурация ───────────────────────

if DEBUG and ENABLE_DEBUG_TOOLBAR:
    # INTERNAL_IPS определяет, с каких IP показывать тулбар.
    INTERNAL_IPS = ["127.0.0.1", "localhost", "::1"]  # базовые локальные значения

    # Дополнительная «магия» для Docker/WSL: вычисляем подсеть и подставляем *.1
    try:
        hostname, _, ips = socket.gethostbyname_ex(socket.gethostname())  # получаем список IP
        INTERNAL_IPS += [ip[:-1] + "1" for ip in ips if "." in ip]        # 172.17.0.X -> 172.17.0.1
    except OSError:
        pass  # если не получилось, остаются локальные адреса

    # Уберём дубликаты, сохраняя порядок
    INTERNAL_IPS = list(dict.fromkeys(INTERNAL_IPS))

    DEBUG_TOOLBAR_CONFIG = {
        "SHOW_COLLAPSED": True,                         # панели свёрнуты по умолчанию
        "RESULTS_CACHE_SIZE": 50,                       # кэш последних результатов
        "ROOT_TAG_EXTRA_ATTRS": 'style="z-index:9999"', # перекрыть фиксированные хедеры
    }

    # SQL-панель не нужна: запросы уходят в бэкенд по HTTP, а не в БД
    DEBUG_TOOLBAR_PANELS = [
        "debug_toolbar.panels.timer.TimerPanel",
        "debug_toolbar.panels.settings.SettingsPanel",
        "debug_toolbar.panels.headers.HeadersPanel",
        "debug_toolbar.panels.request.RequestPanel",
        "debug_toolbar.panels.templates.TemplatesPanel",
        "debug_toolbar.panels.staticfiles.StaticFilesPanel",
        "debug_toolbar.panels.cache.CachePanel",
        "debug_toolbar.panels.redirects.RedirectsPanel",
        "debug_toolbar.panels.profiling.ProfilingPanel",
    ]
