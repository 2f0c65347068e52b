"""
__main__.py

This file adds support for running smartfit as a python module instead of invoking the "smartfit" command line entrypoint.

See the following for a nice high level overview of what __main__ is intended for:

https://docs.python.org/3/library/__main__.html
https://docs.python.org/3/using/cmdline.html#cmdoption-m

"""


from smartfit.cli import main


if __name__ == "__main__":
    main()
