"""예시: Flask 없이 서비스 계층만 사용하기.

Controllers are thin; settlement and check-in logic live in the services.
"""

import importlib

from config import get_settings_module

from src.attendance_refund.attendance_refund.container import build_container
from src.attendance_refund.attendance_refund.refunds.policies import format_krw, refund_status_label


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    settlement = container.settlement_service.settle_program(program_id=1)
    for row in settlement.participants:
        d = row.decision
        print(row.participant_id, d.reason, format_krw(d.refund_amount), refund_status_label(d.refund_rate))
    print("total refund:", format_krw(settlement.total_refund_amount))


if __name__ == "__main__":
    main()
