import os
import sys

# Ensure the project root is on sys.path so the package is importable without
# an editable install, and the tests directory so shared fakes can be imported.
tests_dir = os.path.abspath(os.path.dirname(__file__))
project_root = os.path.abspath(os.path.join(tests_dir, '..'))
for path in (project_root, tests_dir):
    if path not in sys.path:
        sys.path.insert(0, path)
