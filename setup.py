from setuptools import setup, find_packages

setup(
    name="wedding-rsvp",
    version="0.1.0",
    packages=find_packages(include=["rsvp", "rsvp.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "pydantic>=2.6",
        "pydantic-settings>=2.7",
        "sqlalchemy[asyncio]>=2.0",
        "asyncpg>=0.29",
        "typing-extensions>=4.8",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
            "aiosqlite>=0.20",
        ],
    },
)
