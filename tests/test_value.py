from codespy.ir.type import IntType
from codespy.ir.value import Use, Value, ValueKind, value_cast, value_is


class Thing(Value):
    k_kind = ValueKind.LOCAL

    def __init__(self, type=None):
        super().__init__(self.k_kind, type)


class Holder(Value):
    k_kind = ValueKind.INSTRUCTION

    def __init__(self):
        super().__init__(self.k_kind, None)
        self.operand_uses = []

    def _drop_operands(self):
        for use in self.operand_uses:
            use.set(None)


def _attach(holder, operand):
    use = Use(holder)
    use.set(operand)
    holder.operand_uses.append(use)
    return use


def test_new_value_has_no_uses():
    thing = Thing(IntType(32))
    assert not thing.has_uses()
    assert list(thing.users()) == []
    assert thing.kind is ValueKind.LOCAL


def test_use_set_registers_user():
    thing = Thing()
    holder = Holder()
    use = Use(holder)
    use.set(thing)
    assert thing.has_uses()
    assert list(thing.users()) == [holder]
    assert use.value is thing


def test_use_reset_moves_between_values():
    first, second = Thing(), Thing()
    holder = Holder()
    use = Use(holder)
    use.set(first)
    use.set(second)
    assert not first.has_uses()
    assert list(second.users()) == [holder]


def test_setting_same_value_twice_keeps_single_use():
    thing = Thing()
    use = Use(None)
    use.set(thing)
    use.set(thing)
    assert len(thing.uses) == 1


def test_replace_all_uses_with():
    old, new = Thing(), Thing()
    a = Holder()
    b = Holder()
    uses = [Use(a), Use(b), Use(b)]
    for use in uses:
        use.set(old)
    old.replace_all_uses_with(new)
    assert not old.has_uses()
    assert sorted(map(id, new.users())) == sorted(map(id, [a, b, b]))
    assert all(use.value is new for use in uses)


def test_replace_with_self_is_harmless():
    thing = Thing()
    use = Use(Holder())
    use.set(thing)
    thing.replace_all_uses_with(thing)
    assert len(thing.uses) == 1
    assert use.value is thing


def test_destroy_detaches_users_and_operands():
    operand = Thing()
    holder = Holder()
    _attach(holder, operand)
    user = Holder()
    user_use = Use(user)
    user_use.set(holder)
    user.operand_uses.append(user_use)
    holder.destroy()
    assert not operand.has_uses()
    assert not holder.has_uses()
    assert user_use.value is None


def test_value_is_and_cast():
    thing = Thing()
    assert value_is(Thing, thing)
    assert not value_is(Holder, thing)
    assert value_cast(Thing, thing) is thing
    assert value_cast(Holder, thing) is None
    assert value_cast(Thing, None) is None