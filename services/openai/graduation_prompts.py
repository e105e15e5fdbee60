"""Prompt builders for the graduation photo edit."""

INSTITUTION = "Escuela Colombiana de Ingeniería Julio Garavito"

FEMALE_TEMPLATE = """
        Edit the image, based on the reference. The image is of me in the picture smiling while holding my graduation diploma with the logo that i provide to you and the name {name}, additionally two signatures in the bottom right corner and left corner. I am standing in a well-kept garden in front of a circular water fountain. Behind me is a modern multi-story building with large windows, likely a university campus. I am 5 years older dressed elegantly in a formal dress with subtle details, looking professional and confident for my graduation ceremony.

        The diploma I am holding shows that I graduated as a {career} from the {institution} in Colombia. My name, visible on the diploma, is {name}.

        In the background, there are flowering bushes, which, together with the modern building, create a solemn and pleasant atmosphere—perfect for a graduation ceremony. My posture, elegant attire, and the way I proudly hold the diploma reflect my happiness and pride in this academic achievement."""

MALE_TEMPLATE = """
        Edit the image, based on the reference. The image is of me in the picture smiling while holding my graduation diploma with the logo that i provide to you and the name {name}, additionally two signatures in the bottom right corner and left corner. I am standing in a well-kept garden in front of a circular water fountain. Behind me is a modern multi-story building with large windows, likely a university campus. I am 5 years older dressed formally in a white dress shirt with small dark dots, a blue tie with white dots, a dark blue suit jacket, and matching pants.

        The diploma I am holding shows that I graduated as a {career} from the {institution} in Colombia. My name, visible on the diploma, is {name}.

        In the background, there are flowering bushes, which, together with the modern building, create a solemn and pleasant atmosphere—perfect for a graduation ceremony. My posture, formal attire, and the way he proudly holds the diploma reflect my happiness and pride in this academic achievement."""


def select_template(gender: str) -> str:
    """Return the female template for exactly "female", the male template otherwise."""
    return FEMALE_TEMPLATE if gender == "female" else MALE_TEMPLATE


def build_prompt(name: str, gender: str, career: str) -> str:
    """Render the edit instruction for one subject.

    `name` and `career` are inserted verbatim; `str.format` does not
    re-interpret braces inside the substituted values.
    """
    return select_template(gender).format(name=name, career=career, institution=INSTITUTION)
