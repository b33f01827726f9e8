from setuptools import setup, find_packages

setup(
    name="skillexchange",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*", "alembic", "alembic.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "psycopg2-binary",
        "python-jose[cryptography]",
        "pydantic[email]",
        "pydantic-settings",
        "python-dotenv",
        "alembic",
        "afinn",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
)
