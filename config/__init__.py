import os

def get_settings_module() -> str:
    # APP_ENV 값으로 설정 모듈 선택, 기본값은 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"
