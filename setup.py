"""Install the kvsession package."""

from setuptools import setup, find_packages

setup(
    name='kvsession',
    version='0.1.0',
    description='Server-side sessions in Redis, with signed session cookies',
    packages=find_packages(exclude=['*tests*']),
    python_requires='>=3.8',
    install_requires=[
        "flask",
        "werkzeug",
        "pyjwt>=2",
        "jwcrypto",
        "redis>=4.1",
        "python-json-logger",
    ],
    extras_require={
        'test': ['pytest', 'hypothesis'],
    },
    zip_safe=False
)
