"""HTTP layer for agentlab.

Routes parse requests, call workspace/arena/analytics functions and
publish change events. Rating math and statistics live outside this
package.
"""
