"""Conditions on a pull request that gate approval rules and trigger disapproval."""