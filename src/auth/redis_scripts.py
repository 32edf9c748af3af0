"""
Redis Lua scripts for refresh token management.

Scripts run atomically on the Redis server, so the read, the validity flip
and the TTL-preserving write below can not interleave with another client.
"""

# Atomically read a refresh token record and mark it invalid.
#
# KEYS[1]: refresh token key
#
# Returns the value as it was *before* the call, or nil when the key is missing.
# Only a JSON object whose "valid" field is literally true gets rewritten;
# anything else (already invalid, malformed) is returned untouched so the
# caller can reject or report it.
# Needs Redis 6.0+ for SET ... KEEPTTL.
INVALIDATE_AND_FETCH_PREVIOUS_SCRIPT = """
local token_key = KEYS[1]

local current = redis.call('GET', token_key)
if not current then
    return false
end

local ok, record = pcall(cjson.decode, current)
if not ok or type(record) ~= 'table' or record['valid'] ~= true then
    return current
end

record['valid'] = false
local updated = cjson.encode(record)

-- KEEPTTL leaves the expiry exactly as it is, even when it is about to fire
redis.call('SET', token_key, updated, 'KEEPTTL')

return current
"""
