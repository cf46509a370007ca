import logging
from typing import Optional

from django.core.management.base import BaseCommand, CommandError, CommandParser

from drivers.services.backend import BackendClient, BackendError
from drivers.services.drivers import get_driver, iter_drivers
from drivers.services.expiry import EXPIRING_SOON_DAYS, STATUS_EXPIRED, STATUS_LABELS, problem_documents

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Отчёт по просроченным и истекающим документам водителей (данные с бэкенда)."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("--token", type=str, required=True, help="API-токен бэкенда")
        parser.add_argument("--days", type=int, default=EXPIRING_SOON_DAYS,
                            help="Сколько дней вперёд считать «скоро истекает»")
        parser.add_argument("--company", type=str, default=None, help="Код компании (по умолчанию все)")
        parser.add_argument("--base-url", type=str, default=None, help="Адрес API, если не из настроек")

    def handle(self, *args, **opts):
        days: int = int(opts.get("days") or 0)
        company: Optional[str] = opts.get("company")
        if days < 0:
            raise CommandError("--days не может быть отрицательным")

        client = BackendClient(token=opts["token"], base_url=opts.get("base_url"))

        self.stdout.write(f"→ Проверяем документы ({company or 'все компании'}, горизонт {days} дн.) ...")
        checked = 0
        expired = 0
        expiring = 0
        failed = 0

        try:
            for row in iter_drivers(client, company=company or "All"):
                checked += 1
                try:
                    driver = get_driver(client, row["id"])
                except BackendError as e:
                    # один битый профиль не должен останавливать весь отчёт
                    logger.warning("Driver %s skipped: %s", row.get("id"), e)
                    failed += 1
                    continue

                problems = problem_documents(driver, days=days)
                if not problems:
                    continue
                name = f"{driver.get('first_name', '')} {driver.get('last_name', '')}".strip()
                self.stdout.write(f"  #{driver.get('id')} {name} ({driver.get('company_code') or '-'})")
                for doc in problems:
                    if doc["status"] == STATUS_EXPIRED:
                        expired += 1
                    else:
                        expiring += 1
                    self.stdout.write(
                        f"    - {doc['label']}: {STATUS_LABELS[doc['status']]} "
                        f"(до {doc['document'].get('expiry_date')})"
                    )
        except BackendError as e:
            raise CommandError(f"Бэкенд недоступен: {e.message}") from e

        msg = (f"Готово: водителей {checked}, просрочено {expired}, "
               f"истекает {expiring}, не загружено профилей {failed}.")
        style = self.style.WARNING if (expired or failed) else self.style.SUCCESS
        self.stdout.write(style(msg))
