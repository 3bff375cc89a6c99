from setuptools import setup, find_packages

setup(
    name="kiosk-rotation-controller",
    version="0.1.0",
    description="Attract/content rotation and inactivity controller for kiosk displays",
    author="Matt Skillman",
    packages=find_packages(include=["src", "src.*"]),
    python_requires=">=3.8",
    install_requires=[
        "PyYAML>=6.0",
        "pyzmq>=25.0",
        "requests>=2.31.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "pylint>=2.17.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "kiosk-controller=src.kiosk.kiosk_app:main",
        ]
    },
)
