from setuptools import setup


setup(
    name="order-relay",
    version="0.1.0",
    description="Merge multi-channel order exports into one purchase order and fill courier tracking numbers back",
    packages=["order_relay"],
    include_package_data=True,
    install_requires=[
        "pandas",
        "openpyxl",
        "streamlit",
        "requests",
    ],
    entry_points={
        "console_scripts": [
            "order-relay=order_relay.cli:main",
        ]
    },
)
