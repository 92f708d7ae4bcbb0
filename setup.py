from setuptools import setup, find_packages

setup(
    name='psn_sdk_python',
    version='0.1.0',
    packages=find_packages(include=['psn_sdk_python', 'psn_sdk_python.*']),
    install_requires=[
        'numpy',
        'scipy',
        'loop_rate_limiters',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
