from setuptools import setup


with open('README.md', encoding='utf-8') as f:
    long_description = f.read()

with open('requirements.txt', 'r') as f:
    requirements = [l.strip() for l in f if l.strip()]

setup(name='plugin-postgresql',
      version='0.1.0',
      description='Disposable PostgreSQL servers, databases, migrations and seed data for tests',
      long_description=long_description,
      long_description_content_type='text/markdown',
      install_requires=requirements,
      extras_require={
          'fixtures': ['pytest>=7'],
          'test': ['pytest>=7', 'pytest-asyncio>=0.21'],
      },
      license='MIT',
      packages=['plugin_postgresql'],
      python_requires='>=3.9',
      zip_safe=True)
