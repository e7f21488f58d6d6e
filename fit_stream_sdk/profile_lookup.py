'''profile_lookup.py: Names decoded messages and fields using the Garmin FIT SDK profile.'''

from garmin_fit_sdk.profile import Profile


def _message_profile(global_mesg_num: int):
    return Profile['messages'].get(global_mesg_num)


def message_name(global_mesg_num: int):
    '''Returns the profile name of a global message, e.g. "record", or None if unknown.'''
    msg_profile = _message_profile(global_mesg_num)
    return msg_profile['name'] if msg_profile is not None else None


def messages_key(global_mesg_num: int) -> str:
    '''Returns the key used to group messages, e.g. "record_mesgs", or the message number as a string.'''
    msg_profile = _message_profile(global_mesg_num)
    if msg_profile is not None and 'messages_key' in msg_profile:
        return msg_profile['messages_key']
    return str(global_mesg_num)


def field_name(global_mesg_num: int, field_num: int):
    msg_profile = _message_profile(global_mesg_num)
    if msg_profile is None:
        return None

    field_profile = msg_profile['fields'].get(field_num)
    return field_profile['name'] if field_profile is not None else None


def group_by_messages_key(messages) -> dict:
    '''
    Groups decoded messages by message type.

    Returns:
        dict: {'record_mesgs': [{'timestamp': ..., 'heart_rate': ...}, ...], ...}
            Fields the profile does not know are keyed by field number and
            developer fields go under 'developer_fields'. Values are raw.
    '''
    grouped = {}
    for message in messages:
        named = {}
        for decoded in message.fields:
            name = field_name(message.global_mesg_num, decoded.field_num)
            named[name if name is not None else decoded.field_num] = decoded.value

        if message.developer_fields:
            named['developer_fields'] = {decoded.field_num: decoded.value
                                         for decoded in message.developer_fields}

        grouped.setdefault(messages_key(message.global_mesg_num), []).append(named)

    return grouped
