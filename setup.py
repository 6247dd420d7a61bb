"""
Packaging for the serf event relay. Tests are run with pytest from the project root.
"""

from setuptools import setup


setup(
    name='serf-relay',
    version='0.1.0',
    description='Forwards serf event handler invocations to a TCP listener.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    python_requires='>=3.7',
    package_dir={'': 'src'},
    packages=['serfrelay', 'serfrelay.conduit', 'serfrelay.config', 'serfrelay.connector',
              'serfrelay.protocol', 'serfrelay.support'],
    package_data={
        'serfrelay': ['*.cfg'],
        'serfrelay.config': ['*.cfg'],
    },
    install_requires=[
        'configobj>=5.0.6',
    ],
    extras_require={
        'test': ['pytest', 'PyHamcrest'],
    },
    entry_points={
        'console_scripts': [
            'serf-relay = serfrelay.__main__:main',
        ],
    },
    zip_safe=False,
)
