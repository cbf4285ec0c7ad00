#!/usr/bin/env python
"""
Test runner script for running every app's test suite with Django's runner
Usage: python Doc/run_tests.py [app label ...]
"""
import os
import sys

import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'cellar.core',
    'cellar.catalog',
    'cellar.sales',
    'cellar.wines',
    'cellar.articles',
    'cellar.reports',
]

if __name__ == "__main__":
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'cellar.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or APPS)
    sys.exit(bool(failures))
