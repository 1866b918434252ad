from setuptools import find_packages, setup

# Minimal setup.py to allow pip installation in environments (like p4a) that
# default to legacy builds and need explicit python_requires.

package_list = find_packages(
  include=[
    "deeplink",
    "deeplink.*",
    "os_interfaces",
    "os_interfaces.*",
    "backend",
    "backend.*",
    "entrypoints",
    "entrypoints.*",
  ]
)

setup(
  name="songbuddy-shell",
  version="0.1.0",
  description="SongBuddy platform shell: OAuth deep links and sync notifications",
  python_requires=">=3.11",
  packages=package_list,
  include_package_data=True,
  install_requires=[
    "fastapi",
    "uvicorn[standard]",
    "pywebview",
    "pyyaml",
    "pydantic>=2",
    "python-dotenv",
    "platformdirs",
    "asgi-correlation-id",
  ],
  extras_require={
    "android": ["pyjnius", "cython==3.0.12", "buildozer"],
    "linux": ["desktop-notifier"],
    "dev": [
      "pytest",
      "pytest-asyncio",
      "pytest-cov",
      "httpx",
      "desktop-notifier",
    ],
  },
  entry_points={
    "console_scripts": [
      "songbuddy=entrypoints.songbuddy_app_linux:main",
    ],
  },
)
