import asyncio

from gambit.bot import main


if __name__ == "__main__":
    asyncio.run(main())
