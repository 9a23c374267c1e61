"""
Packaging for the serial relay.

The tests live beside the modules they test (*_test.py), with integration tests under integrate/.
Run them with `pip install -e .[test]` and then `pytest src integrate`.
"""

from setuptools import setup

setup(
    name='serial-relay',
    version='0.0.1',
    description='Relays a serial port to websocket clients.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['serialrelay', 'serialrelay.conduit', 'serialrelay.config', 'serialrelay.connector',
              'serialrelay.protocol', 'serialrelay.support'],
    package_data={'serialrelay': ['*.cfg']},
    python_requires='>=3.8',
    install_requires=[
        'pyserial>=3.4',
        'websockets>=13.0',
        'configobj>=5.0.6',
    ],
    extras_require={
        'test': [
            'PyHamcrest',
            'timeout-decorator',
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'serial-relay=serialrelay.relay:main',
        ],
    },
    zip_safe=False,
)
