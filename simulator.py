"""Interactive CLI chat simulator — test the OTP flow without Telegram."""

import asyncio

from telegram_otp.bot.commands import CommandRouter
from telegram_otp.config import settings
from telegram_otp.models.records import TelegramUser
from telegram_otp.services.otp import OTPService
from telegram_otp.store.client import StoreClient
from telegram_otp.store.code_store import CodeStore
from telegram_otp.store.errors import StoreConnectionError
from telegram_otp.store.rate_limiter import RateLimiter

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  🤖  Telegram OTP — Chat Simulator")
    print(f"{'=' * 52}{RESET}\n")

    print(f"{DIM}Tip: Send /start or /help as the bot user{RESET}")
    print(f"{DIM}     Type 'verify <code>' to redeem as the web caller{RESET}")
    print(f"{DIM}     Type 'quit' to exit{RESET}\n")

    user_id = input(f"{YELLOW}Telegram user id to simulate [42]: {RESET}").strip() or "42"
    user = TelegramUser(id=int(user_id), first_name="Sim", full_name="Sim")
    print(f"{DIM}Simulating as user {user.id}{RESET}\n")

    try:
        store = StoreClient(settings.redis_host, settings.redis_port)
        await store.open()
    except StoreConnectionError as exc:
        print(f"{BOLD}Cannot reach store:{RESET} {exc}")
        return

    try:
        otp_service = OTPService(
            CodeStore(store),
            RateLimiter(store),
            ttl_seconds=settings.otp_ttl_seconds,
            rate_limit_window_ms=settings.rate_limit_window,
        )
        router = CommandRouter(otp_service)

        while True:
            try:
                user_input = input(f"{BLUE}{BOLD}You:{RESET} ").strip()
            except (KeyboardInterrupt, EOFError):
                print(f"\n{DIM}Goodbye!{RESET}")
                break

            if not user_input:
                continue

            if user_input.lower() == "quit":
                print(f"{DIM}Goodbye!{RESET}")
                break

            if user_input.lower().startswith("verify "):
                result = await otp_service.verify(user_input.split(maxsplit=1)[1])
                if result.ok:
                    print(f"{GREEN}{BOLD}Web:{RESET} ✅ verified user {result.user.id}\n")
                else:
                    print(f"{GREEN}{BOLD}Web:{RESET} ❌ {result.reason.value}\n")
                continue

            reply = await router.route(user_input, user)
            print(f"{GREEN}{BOLD}Bot:{RESET} {reply.text}\n")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
