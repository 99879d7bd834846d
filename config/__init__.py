# Author: Bradley R. Kinnard
# config module
